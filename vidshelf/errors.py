from .config import settings


class VidshelfError(Exception):
    """Base class for all vidshelf errors."""


class ValidationError(VidshelfError):
    """A precondition on a user-triggered operation was violated."""


class CapacityError(ValidationError):
    """The saved video list is full."""

    def __init__(self, max_count: int = settings.MAX_SAVABLE_VIDEOS_COUNT):
        self.max_count = max_count
        super().__init__(f"비디오는 {max_count}개 이상 저장할 수 없습니다")


class NotFoundError(VidshelfError):
    """The video id is not in the saved list."""

    def __init__(self, video_id: str):
        self.video_id = video_id
        super().__init__(f"Video {video_id} is not saved")


class FetchError(VidshelfError):
    """The remote endpoint could not be reached or answered with an error."""


class ParseError(VidshelfError):
    """A raw API record or persisted value has an unexpected shape."""
