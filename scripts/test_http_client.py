import asyncio
from lyrics_proxy.core.http_client import HttpClientManager


def test_shared_client_is_reused_until_closed():
    async def scenario():
        first = HttpClientManager.get_client()
        same = HttpClientManager.get_client()
        await HttpClientManager.close()
        closed = first.is_closed
        fresh = HttpClientManager.get_client()
        await HttpClientManager.close()
        return first, same, closed, fresh

    first, same, closed, fresh = asyncio.run(scenario())

    assert first is same
    assert closed is True
    assert fresh is not first
    assert HttpClientManager._client is None
