import logging

from ..config import settings

logger = logging.getLogger(__name__)


class KeywordHistory:
    """Most recent search keywords, newest first, without duplicates."""

    def __init__(
        self,
        store,
        key: str = settings.LOCAL_STORAGE_KEYWORD_HISTORY_KEY,
        max_count: int = settings.MAX_KEYWORD_HISTORY_COUNT,
    ):
        self.store = store
        self.key = key
        self.max_count = max_count

    def load(self) -> list:
        data = self.store.load(self.key, [])
        if not isinstance(data, list):
            logger.warning(f"Keyword history under {self.key} is not a list. Using empty history.")
            return []
        return [keyword for keyword in data if isinstance(keyword, str)][:self.max_count]

    def add(self, keyword: str) -> list:
        keyword = (keyword or "").strip()
        if not keyword:
            return self.load()

        keywords = [k for k in self.load() if k != keyword]
        keywords.insert(0, keyword)
        keywords = keywords[:self.max_count]
        self.store.save(self.key, keywords)
        return keywords

    def clear(self) -> None:
        self.store.save(self.key, [])
