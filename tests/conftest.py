import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from vidshelf.main import app
from vidshelf.config import settings
from vidshelf.services.storage import MemoryStore
from vidshelf.services.video_cache import VideoCache


def make_search_item(video_id, title="Video", published_at="2021-03-05T12:00:00Z"):
    """A record shaped like a search.list result."""
    return {
        "kind": "youtube#searchResult",
        "id": {"kind": "youtube#video", "videoId": video_id},
        "snippet": {
            "publishedAt": published_at,
            "title": title,
            "channelTitle": "Channel",
            "thumbnails": {"medium": {"url": f"https://i.ytimg.com/vi/{video_id}/mqdefault.jpg"}},
        },
    }


@pytest.fixture
def client(tmp_path, monkeypatch):
    # Force mock mode and a throwaway store for tests
    monkeypatch.setattr(settings, "MOCK_MODE", True)
    monkeypatch.setattr(settings, "STORAGE_FILE", str(tmp_path / "store.json"))
    with TestClient(app) as c:
        yield c

@pytest.fixture
def store():
    return MemoryStore()

@pytest.fixture
def cache(store):
    return VideoCache(store)

@pytest.fixture
def mock_youtube_client():
    youtube = AsyncMock()
    youtube.search.return_value = {"items": []}
    youtube.videos.return_value = {"items": []}
    return youtube
