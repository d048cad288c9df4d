import asyncio
import logging
from typing import Optional

import httpx
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..config import settings
from ..errors import FetchError

logger = logging.getLogger(__name__)


def get_mock_catalog():
    """Returns fake API records for running without network or keys."""
    return [
        {
            "kind": "youtube#searchResult",
            "id": {"kind": "youtube#video", "videoId": "dQw4w9WgXcQ"},
            "snippet": {
                "publishedAt": "2009-10-25T06:57:33Z",
                "title": "Rick Astley - Never Gonna Give You Up (Official Music Video)",
                "channelTitle": "Rick Astley",
                "thumbnails": {"medium": {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/mqdefault.jpg"}},
            },
        },
        {
            "kind": "youtube#searchResult",
            "id": {"kind": "youtube#video", "videoId": "jNQXAC9IVRw"},
            "snippet": {
                "publishedAt": "2005-04-24T03:31:52Z",
                "title": "Me at the zoo",
                "channelTitle": "jawed",
                "thumbnails": {"medium": {"url": "https://i.ytimg.com/vi/jNQXAC9IVRw/mqdefault.jpg"}},
            },
        },
        {
            "kind": "youtube#searchResult",
            "id": {"kind": "youtube#video", "videoId": "9bZkp7q19f0"},
            "snippet": {
                "publishedAt": "2012-07-15T07:46:32Z",
                "title": "PSY - GANGNAM STYLE(강남스타일) M/V",
                "channelTitle": "officialpsy",
                "thumbnails": {"medium": {"url": "https://i.ytimg.com/vi/9bZkp7q19f0/mqdefault.jpg"}},
            },
        },
    ]


class ProxyYouTubeClient:
    """Talks to the serverless proxy that forwards to the YouTube Data API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        server_url: str = settings.SERVER_URL,
        page_size: int = settings.MAX_RENDER_VIDEOS_COUNT,
        region_code: str = settings.REGION_CODE,
        safe_search: str = settings.SAFE_SEARCH,
    ):
        self.http_client = http_client
        self.server_url = server_url.rstrip("/")
        self.page_size = page_size
        self.region_code = region_code
        self.safe_search = safe_search

    def _base_params(self) -> dict:
        return {
            "part": "snippet",
            "type": "video",
            "maxResults": self.page_size,
            "regionCode": self.region_code,
            "safeSearch": self.safe_search,
        }

    async def _request(self, path: str, params: dict) -> dict:
        url = f"{self.server_url}/{path}"
        try:
            response = await self.http_client.get(url, params={**self._base_params(), **params})
        except httpx.HTTPError as e:
            raise FetchError(f"Request to {url} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise FetchError(f"Invalid JSON from {url} (status {response.status_code})") from e

        if not response.is_success:
            message = None
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                message = body["error"].get("message")
            raise FetchError(message or f"{url} answered with status {response.status_code}")
        if not isinstance(body, dict):
            raise FetchError(f"Unexpected response body from {url}")
        return body

    async def search(self, query: str, page_token: Optional[str] = None) -> dict:
        params = {"q": query}
        if page_token:
            params["pageToken"] = page_token
        return await self._request("youtube-search", params)

    async def videos(self, ids: list) -> dict:
        return await self._request("youtube-videos", {"id": ",".join(ids)})


class DataApiYouTubeClient:
    """Calls the YouTube Data API v3 directly with an API key."""

    def __init__(
        self,
        api_key: str,
        page_size: int = settings.MAX_RENDER_VIDEOS_COUNT,
        region_code: str = settings.REGION_CODE,
        safe_search: str = settings.SAFE_SEARCH,
    ):
        self.api_key = api_key
        self.page_size = page_size
        self.region_code = region_code
        self.safe_search = safe_search
        self._youtube = None

    @property
    def youtube(self):
        """Lazy-load the YouTube API service."""
        if self._youtube is None:
            self._youtube = build("youtube", "v3", developerKey=self.api_key)
        return self._youtube

    async def _execute(self, request) -> dict:
        # execute() blocks on the network, keep it off the event loop
        try:
            return await asyncio.to_thread(request.execute)
        except HttpError as e:
            raise FetchError(f"YouTube API error: {e}") from e
        except Exception as e:
            raise FetchError(f"YouTube API request failed: {e}") from e

    async def search(self, query: str, page_token: Optional[str] = None) -> dict:
        request = self.youtube.search().list(
            part="snippet",
            type="video",
            q=query,
            maxResults=self.page_size,
            regionCode=self.region_code,
            safeSearch=self.safe_search,
            pageToken=page_token,
        )
        return await self._execute(request)

    async def videos(self, ids: list) -> dict:
        items = []
        # API allows batching up to 50 ids
        for i in range(0, len(ids), 50):
            batch = ids[i:i+50]
            request = self.youtube.videos().list(
                part="snippet",
                id=",".join(batch),
                maxResults=len(batch),
            )
            response = await self._execute(request)
            items.extend(response.get("items", []))
        return {"items": items}


class MockYouTubeClient:
    """Serves get_mock_catalog() with the same paging contract as the real endpoints."""

    def __init__(self, page_size: int = settings.MAX_RENDER_VIDEOS_COUNT, catalog: Optional[list] = None):
        self.page_size = page_size
        self.catalog = catalog if catalog is not None else get_mock_catalog()

    async def search(self, query: str, page_token: Optional[str] = None) -> dict:
        needle = query.lower()
        matches = [
            item for item in self.catalog
            if needle in item["snippet"]["title"].lower() or needle in item["snippet"]["channelTitle"].lower()
        ]
        start = int(page_token.rsplit("-", 1)[-1]) if page_token else 0
        end = start + self.page_size
        response = {"items": matches[start:end]}
        if end < len(matches):
            response["nextPageToken"] = f"mock-page-{end}"
        return response

    async def videos(self, ids: list) -> dict:
        wanted = set(ids)
        items = []
        for item in self.catalog:
            if item["id"]["videoId"] in wanted:
                # videos.list returns the id as a plain string
                items.append({**item, "kind": "youtube#video", "id": item["id"]["videoId"]})
        return {"items": items}


def get_youtube_client(http_client: Optional[httpx.AsyncClient] = None):
    if settings.MOCK_MODE:
        logger.info("MOCK: serving canned YouTube responses")
        return MockYouTubeClient()
    if settings.YOUTUBE_API_KEY:
        return DataApiYouTubeClient(settings.YOUTUBE_API_KEY)
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT)
    return ProxyYouTubeClient(http_client)
