from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from typing import Optional

from .errors import ParseError


def format_published_at(published_at: str) -> str:
    """Turns "2021-03-05T12:00:00Z" into "2021년 03월 05일"."""
    parts = published_at.split('T')[0].strip().split('-')
    if len(parts) != 3 or not all(parts):
        raise ParseError(f"Unexpected publishedAt value: {published_at!r}")
    year, month, day = parts
    return f"{year}년 {month}월 {day}일"


class VideoItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    channel_title: str
    thumbnail_url: str
    published_at: str
    # Snapshot taken at fetch time; the cache holds the live value
    watched: bool = False

    @classmethod
    def from_api_item(cls, item: dict, watched: bool = False) -> "VideoItem":
        """Flattens a search or videos.list record.

        Search results nest the id as {"kind": ..., "videoId": ...} while
        lookups by id return it as a plain string.
        """
        try:
            raw_id = item["id"]
            video_id = raw_id["videoId"] if isinstance(raw_id, dict) else raw_id
            snippet = item["snippet"]
            return cls(
                id=video_id,
                title=snippet["title"],
                channel_title=snippet["channelTitle"],
                thumbnail_url=snippet["thumbnails"]["medium"]["url"],
                published_at=format_published_at(snippet["publishedAt"]),
                watched=watched,
            )
        except (KeyError, TypeError, AttributeError, PydanticValidationError) as e:
            raise ParseError(f"Malformed video record: {e!r}") from e


class SavedStatus(BaseModel):
    saved: bool
    watched: bool


class VideoCard(BaseModel):
    """A VideoItem with its saved/watched state resolved at render time."""
    video_id: str
    title: str
    channel_title: str
    thumbnail_url: str
    published_at: str
    saved: bool
    watched: bool


class SearchPageResponse(BaseModel):
    query: str
    items: list[VideoCard]
    has_more: bool


class SaveRequest(BaseModel):
    video_id: str


class SavedCount(BaseModel):
    count: int
    max_count: int
    remaining: int


class KeywordHistoryResponse(BaseModel):
    keywords: list[str]
    latest: Optional[str] = None
