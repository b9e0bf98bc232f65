import httpx
import asyncio
import os

PORT = os.environ.get("PORT", "8001")
SECRET = os.environ.get("PROXY_SECRET", "")
SONG_ID = os.environ.get("VERIFY_SONG_ID", "378195")

async def test_api():
    url = f"http://127.0.0.1:{PORT}/song/{SONG_ID}"
    headers = {"X-Proxy-Secret": SECRET}

    print(f"Sending request to {url}...")
    try:
        async with httpx.AsyncClient(trust_env=False) as client:
            for attempt in (1, 2):
                response = await client.get(url, headers=headers, timeout=30.0)
                print(f"[{attempt}] Status Code: {response.status_code}, X-Proxy-Cache: {response.headers.get('x-proxy-cache')}")
                if response.status_code != 200:
                    print(f"Error Response: {response.text}")
                    return

            data = response.json()
            blocks = data.get("description", [])
            print(f"Title: {data.get('title')} - {data.get('artist_names')}")
            print(f"Description items: {len(blocks)}")
            if blocks:
                print(f"First item: {blocks[0]}")

            if response.headers.get("x-proxy-cache") == "HIT":
                print("\n✅ Verification SUCCESS: second request served from cache.")
            else:
                print("\n❌ Verification FAILED: second request was not a cache hit.")
    except Exception as e:
        print(f"Request Failed: {e}")

if __name__ == "__main__":
    asyncio.run(test_api())
