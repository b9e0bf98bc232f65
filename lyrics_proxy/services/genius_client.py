import logging
import httpx
from typing import Any, Dict, Optional
from lyrics_proxy.core.errors import UpstreamError
from lyrics_proxy.core.flattener import flatten_dom
from lyrics_proxy.core.http_client import HttpClientManager
from lyrics_proxy.schemas.models import AlbumRecord, ArtistRecord, SongRecord

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.genius.com"


class GeniusClient:
    """
    Thin client for the Genius REST API.
    One authenticated GET per call, no retries. Description DOMs are flattened.
    """

    def __init__(self, base_url: str = DEFAULT_API_BASE, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Injected client, or the shared one."""
        return self._client or HttpClientManager.get_client()

    async def _get_resource(self, path: str, key: str, token: str) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.info(f"Fetching Genius resource: {path}")

        response = await self.client.get(url, headers={"Authorization": f"Bearer {token}"})
        if not response.is_success:
            logger.error(f"Genius API returned {response.status_code} for {path}")
            raise UpstreamError(response.status_code, response.reason_phrase)

        try:
            payload = response.json()
            resource = payload["response"][key]
        except (ValueError, KeyError, TypeError) as e:
            raise UpstreamError(
                response.status_code,
                response.reason_phrase,
                message=f"Malformed Genius API response: missing response.{key}",
            ) from e

        if not isinstance(resource, dict):
            raise UpstreamError(
                response.status_code,
                response.reason_phrase,
                message=f"Malformed Genius API response: missing response.{key}",
            )
        return resource

    @staticmethod
    def _description(resource: Dict[str, Any]):
        description = resource.get("description") or {}
        return flatten_dom(description.get("dom"))

    @staticmethod
    def _album(album: Optional[Dict[str, Any]]) -> Optional[AlbumRecord]:
        if not album:
            return None
        primary_artists = album.get("primary_artists") or []
        return AlbumRecord(
            name=album.get("name"),
            primary_artist=primary_artists[0].get("name") if primary_artists else None,
            release_date=album.get("release_date_for_display"),
            url=album.get("url"),
        )

    async def fetch_song(self, song_id: str, token: str) -> SongRecord:
        song = await self._get_resource(f"/songs/{song_id}", "song", token)
        return SongRecord(
            artist_names=song.get("artist_names"),
            description=self._description(song),
            title=song.get("title"),
            language=song.get("language"),
            release_date=song.get("release_date"),
            title_with_featured=song.get("title_with_featured"),
            url=song.get("url"),
            primary_color=song.get("song_art_primary_color"),
            secondary_color=song.get("song_art_secondary_color"),
            album=self._album(song.get("album")),
        )

    async def fetch_artist(self, artist_id: str, token: str) -> ArtistRecord:
        artist = await self._get_resource(f"/artists/{artist_id}", "artist", token)
        return ArtistRecord(
            name=artist.get("name"),
            description=self._description(artist),
            url=artist.get("url"),
        )
