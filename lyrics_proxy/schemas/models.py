from typing import Annotated, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

class Span(BaseModel):
    text: str
    styles: List[str] = []  # application order, e.g. ["italic", "bold"]
    link: Optional[str] = None

class TextBlock(BaseModel):
    type: Literal["paragraph", "blockquote"]
    spans: List[Span]

class ImageBlock(BaseModel):
    type: Literal["image"] = "image"
    url: Optional[str] = None
    alt: Optional[str] = None
    width: Optional[Union[int, float, str]] = None
    height: Optional[Union[int, float, str]] = None

DescriptionItem = Annotated[Union[TextBlock, ImageBlock], Field(discriminator="type")]

class AlbumRecord(BaseModel):
    name: Optional[str] = None
    primary_artist: Optional[str] = None
    release_date: Optional[str] = Field(None, description="Upstream release_date_for_display")
    url: Optional[str] = None

class SongRecord(BaseModel):
    artist_names: Optional[str] = None
    description: List[DescriptionItem] = []
    title: Optional[str] = None
    language: Optional[str] = None
    release_date: Optional[str] = None
    title_with_featured: Optional[str] = None
    url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    album: Optional[AlbumRecord] = None

class ArtistRecord(BaseModel):
    name: Optional[str] = None
    description: List[DescriptionItem] = []
    url: Optional[str] = None

class CachedResponse(BaseModel):
    status_code: int = 200
    headers: Dict[str, str] = {}
    body: str
    expires_at: float = Field(..., description="Unix timestamp after which the entry is stale")

    model_config = ConfigDict(extra='forbid')

class RateLimitResult(BaseModel):
    success: bool
