import logging
from contextlib import asynccontextmanager
from enum import Enum

import httpx
from fastapi import FastAPI, Query, Request, HTTPException
from fastapi.responses import HTMLResponse

from vidshelf.config import settings
from vidshelf.errors import CapacityError, NotFoundError, ValidationError
from vidshelf.models import (
    KeywordHistoryResponse,
    SaveRequest,
    SavedCount,
    SearchPageResponse,
    VideoCard,
    VideoItem,
)
from vidshelf.services.events import Message, MessageBus
from vidshelf.services.history import KeywordHistory
from vidshelf.services.search import SearchPager
from vidshelf.services.storage import get_store
from vidshelf.services.video_cache import VideoCache
from vidshelf.services.youtube import get_youtube_client

logger = logging.getLogger(__name__)


class VideoFilter(str, Enum):
    all = "all"
    watched = "watched"
    watch_later = "watch-later"


def subscribe_listeners(bus: MessageBus, history: KeywordHistory) -> None:
    bus.subscribe(Message.KEYWORD_SUBMITTED, history.add)
    bus.subscribe(Message.DATA_LOADED, lambda videos: logger.info(f"Loaded {len(videos)} videos"))
    bus.subscribe(Message.VIDEO_SAVED, lambda video_id: logger.info(f"Video saved: {video_id}"))
    bus.subscribe(Message.VIDEO_REMOVED, lambda video_id: logger.info(f"Video removed: {video_id}"))
    bus.subscribe(
        Message.WATCHED_TOGGLED,
        lambda data: logger.info(f"Video {data['video_id']} watched={data['watched']}"),
    )
    bus.subscribe(Message.VIDEO_LIST_CLEARED, lambda _: logger.info("Saved video list cleared"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = get_store(settings.STORAGE_FILE)
    cache = VideoCache(store)
    history = KeywordHistory(store)
    bus = MessageBus()
    subscribe_listeners(bus, history)

    http_client = httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT)
    youtube = get_youtube_client(http_client)

    app.state.cache = cache
    app.state.history = history
    app.state.bus = bus
    app.state.pager = SearchPager(youtube, cache)
    logger.info(f"vidshelf started with {cache.count} saved videos (store: {settings.STORAGE_FILE})")
    try:
        yield
    finally:
        await http_client.aclose()


app = FastAPI(lifespan=lifespan)


def render_cards(request: Request, videos: list[VideoItem]) -> list[VideoCard]:
    pager: SearchPager = request.app.state.pager
    cards = []
    for video in videos:
        # Looked up at render time, not taken from the item
        status = pager.status(video.id)
        cards.append(VideoCard(
            video_id=video.id,
            title=video.title,
            channel_title=video.channel_title,
            thumbnail_url=video.thumbnail_url,
            published_at=video.published_at,
            saved=status.saved,
            watched=status.watched,
        ))
    return cards


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return HTMLResponse("")

@app.get("/api/search", response_model=SearchPageResponse)
async def search_videos(q: str, request: Request):
    pager: SearchPager = request.app.state.pager
    bus: MessageBus = request.app.state.bus

    try:
        videos = await pager.start_query(q)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    bus.publish(Message.KEYWORD_SUBMITTED, q)

    if videos is None:
        raise HTTPException(status_code=502, detail="Could not fetch search results")
    bus.publish(Message.DATA_LOADED, videos)
    return SearchPageResponse(query=q, items=render_cards(request, videos), has_more=pager.has_more)

@app.get("/api/search/next", response_model=SearchPageResponse)
async def search_next_page(request: Request):
    pager: SearchPager = request.app.state.pager

    videos = await pager.fetch_next_page()
    if videos is None:
        raise HTTPException(status_code=502, detail="Could not fetch the next page")
    if videos:
        request.app.state.bus.publish(Message.DATA_LOADED, videos)
    return SearchPageResponse(query=pager.query or "", items=render_cards(request, videos), has_more=pager.has_more)

@app.get("/api/videos", response_model=list[VideoCard])
async def list_saved_videos(request: Request, video_filter: VideoFilter = Query(VideoFilter.all, alias="filter")):
    cache: VideoCache = request.app.state.cache
    pager: SearchPager = request.app.state.pager

    watched = {VideoFilter.all: None, VideoFilter.watched: True, VideoFilter.watch_later: False}[video_filter]
    videos = await pager.lookup_videos(cache.ids(watched=watched))
    if videos is None:
        raise HTTPException(status_code=502, detail="Could not fetch saved videos")
    return render_cards(request, videos)

@app.get("/api/videos/count", response_model=SavedCount)
async def saved_video_count(request: Request):
    cache: VideoCache = request.app.state.cache
    return SavedCount(count=cache.count, max_count=cache.max_count, remaining=cache.remaining)

@app.post("/api/videos")
async def save_video(data: SaveRequest, request: Request):
    cache: VideoCache = request.app.state.cache

    try:
        cache.save(data.video_id)
    except CapacityError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    request.app.state.bus.publish(Message.VIDEO_SAVED, data.video_id)
    return {"status": "saved", "video_id": data.video_id, "count": cache.count}

@app.post("/api/videos/{video_id}/watched")
async def toggle_watched(video_id: str, request: Request):
    cache: VideoCache = request.app.state.cache

    try:
        watched = cache.toggle_watched(video_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    request.app.state.bus.publish(Message.WATCHED_TOGGLED, {"video_id": video_id, "watched": watched})
    return {"video_id": video_id, "watched": watched}

@app.delete("/api/videos/{video_id}")
async def remove_video(video_id: str, request: Request):
    request.app.state.cache.remove(video_id)
    request.app.state.bus.publish(Message.VIDEO_REMOVED, video_id)
    return {"status": "removed", "video_id": video_id}

@app.delete("/api/videos")
async def clear_videos(request: Request):
    request.app.state.cache.clear()
    request.app.state.bus.publish(Message.VIDEO_LIST_CLEARED)
    return {"status": "cleared"}

@app.get("/api/keywords", response_model=KeywordHistoryResponse)
async def keyword_history(request: Request):
    keywords = request.app.state.history.load()
    return KeywordHistoryResponse(keywords=keywords, latest=keywords[0] if keywords else None)
