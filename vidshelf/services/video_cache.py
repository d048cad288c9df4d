import logging
from typing import Optional

from ..config import settings
from ..errors import CapacityError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class VideoCache:
    """Saved video ids with their watched flag, mirrored from a durable store.

    Every mutation reads the whole mapping from the store, writes the whole
    mapping back, then reloads the in-memory mirror from what was written.
    The mapping never grows past max_count entries.
    """

    def __init__(
        self,
        store,
        key: str = settings.LOCAL_STORAGE_VIDEO_LIST_KEY,
        max_count: int = settings.MAX_SAVABLE_VIDEOS_COUNT,
    ):
        self.store = store
        self.key = key
        self.max_count = max_count
        self._cache = self.load()

    def load(self) -> dict:
        """Reads {video_id: {"watched": bool}} from the store."""
        data = self.store.load(self.key, {})
        if not isinstance(data, dict):
            logger.warning(f"Saved video list under {self.key} is not a mapping. Using empty list.")
            return {}

        videos = {}
        for video_id, entry in data.items():
            if not isinstance(entry, dict) or not isinstance(entry.get("watched"), bool):
                logger.warning(f"Dropping malformed saved entry for {video_id}: {entry!r}")
                continue
            videos[video_id] = {"watched": entry["watched"]}
        return videos

    def _persist(self, videos: dict) -> None:
        self.store.save(self.key, videos)
        self._cache = self.load()

    def save(self, video_id: str) -> None:
        if not isinstance(video_id, str) or not video_id.strip():
            raise ValidationError("Video id must be a non-empty string")

        videos = self.load()
        if len(videos) >= self.max_count:
            raise CapacityError(self.max_count)

        videos[video_id] = {"watched": False}
        self._persist(videos)
        logger.info(f"Saved video {video_id} ({len(self._cache)}/{self.max_count})")

    def toggle_watched(self, video_id: str) -> bool:
        """Flips the watched flag and returns the new value."""
        videos = self.load()
        if video_id not in videos:
            raise NotFoundError(video_id)

        videos[video_id] = {"watched": not videos[video_id]["watched"]}
        self._persist(videos)
        return self._cache[video_id]["watched"]

    def remove(self, video_id: str) -> None:
        videos = self.load()
        if videos.pop(video_id, None) is not None:
            logger.info(f"Removed video {video_id}")
        self._persist(videos)

    def clear(self) -> None:
        self._persist({})
        logger.info("Cleared saved video list")

    @property
    def cache(self) -> dict:
        return {video_id: dict(entry) for video_id, entry in self._cache.items()}

    @property
    def count(self) -> int:
        return len(self._cache)

    @property
    def remaining(self) -> int:
        return max(0, self.max_count - len(self._cache))

    @property
    def is_full(self) -> bool:
        return len(self._cache) >= self.max_count

    def is_saved(self, video_id: str) -> bool:
        return video_id in self._cache

    def is_watched(self, video_id: str) -> bool:
        entry = self._cache.get(video_id)
        return bool(entry and entry["watched"])

    def ids(self, watched: Optional[bool] = None) -> list:
        """Saved ids, optionally only the watched (True) or watch-later (False) ones."""
        if watched is None:
            return list(self._cache)
        return [video_id for video_id, entry in self._cache.items() if entry["watched"] == watched]
