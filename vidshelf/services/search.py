import logging
from typing import AsyncIterator, Iterable, Optional

from ..config import settings
from ..errors import FetchError, ParseError, ValidationError
from ..models import SavedStatus, VideoItem
from .video_cache import VideoCache

logger = logging.getLogger(__name__)


class SearchPager:
    """Pages through search results for one query at a time.

    Holds the active query and the continuation token of the last page.
    Starting a new query forgets the token, and a response that arrives
    after the query changed is dropped.

    Fetch methods return None when the request failed and a (possibly
    empty) list of VideoItem otherwise.
    """

    def __init__(self, client, cache: VideoCache, page_size: int = settings.MAX_RENDER_VIDEOS_COUNT):
        self.client = client
        self.cache = cache
        self.page_size = page_size
        self._query: Optional[str] = None
        self._next_page_token: Optional[str] = None
        self._started = False
        self._loading = False
        self._generation = 0

    @property
    def query(self) -> Optional[str]:
        return self._query

    @property
    def next_page_token(self) -> Optional[str]:
        return self._next_page_token

    @property
    def started(self) -> bool:
        """True once a page has been received for the active query."""
        return self._started

    @property
    def has_more(self) -> bool:
        return self._started and self._next_page_token is not None

    @property
    def is_exhausted(self) -> bool:
        return self._started and self._next_page_token is None

    @property
    def loading(self) -> bool:
        return self._loading

    async def start_query(self, query: str) -> Optional[list]:
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Search query must not be empty")

        self._generation += 1
        self._query = query
        self._next_page_token = None
        self._started = False
        return await self._fetch_page()

    async def fetch_next_page(self) -> Optional[list]:
        if not self.has_more:
            logger.debug(f"No next page for query {self._query!r}")
            return []
        if self._loading:
            logger.debug("A page is already loading, ignoring request")
            return []
        return await self._fetch_page()

    async def iter_query(self, query: str, max_pages: Optional[int] = None) -> AsyncIterator[VideoItem]:
        """Yields items page by page until results run out or a request fails."""
        videos = await self.start_query(query)
        generation = self._generation
        pages = 1
        # Empty pages that still carry a token are skipped, not treated as the end
        while videos is not None:
            for video in videos:
                yield video
            if not self.has_more or (max_pages is not None and pages >= max_pages):
                return
            if generation != self._generation or self._loading:
                return
            videos = await self.fetch_next_page()
            pages += 1

    async def _fetch_page(self) -> Optional[list]:
        generation = self._generation
        query = self._query
        page_token = self._next_page_token

        self._loading = True
        try:
            body = await self.client.search(query, page_token)
        except FetchError as e:
            if generation != self._generation:
                logger.debug(f"Ignoring failed stale page for {query!r}: {e}")
                return []
            logger.error(f"Search for {query!r} failed: {e}")
            return None
        finally:
            if generation == self._generation:
                self._loading = False

        if generation != self._generation:
            logger.debug(f"Discarding stale page for {query!r}, active query is {self._query!r}")
            return []

        videos = self._decode(body.get("items"))
        if videos is None:
            return None

        self._next_page_token = body.get("nextPageToken") or None
        self._started = True
        logger.info(f"Fetched {len(videos)} videos for {query!r} (more={self.has_more})")
        return videos

    async def lookup_videos(self, ids: Iterable[str]) -> Optional[list]:
        """Fetches the given ids in one request, in the order the endpoint returns them."""
        ids = list(ids)
        if not ids:
            return []
        try:
            body = await self.client.videos(ids)
        except FetchError as e:
            logger.error(f"Lookup of {len(ids)} videos failed: {e}")
            return None
        return self._decode(body.get("items"))

    def _decode(self, raw_items) -> Optional[list]:
        if raw_items is None:
            return []
        if not isinstance(raw_items, list):
            logger.error(f"Expected a list of items, got {type(raw_items).__name__}")
            return None

        videos = []
        for raw in raw_items:
            try:
                video = VideoItem.from_api_item(raw)
            except ParseError as e:
                logger.warning(f"Skipping malformed item: {e}")
                continue
            if self.cache.is_watched(video.id):
                video = video.model_copy(update={"watched": True})
            videos.append(video)
        return videos

    def status(self, video_id: str) -> SavedStatus:
        """Saved/watched state as the cache holds it right now."""
        return SavedStatus(saved=self.cache.is_saved(video_id), watched=self.cache.is_watched(video_id))
