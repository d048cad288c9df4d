import asyncio

import pytest

from vidshelf.errors import FetchError, ValidationError
from vidshelf.services.search import SearchPager
from conftest import make_search_item


@pytest.mark.asyncio
async def test_start_query_returns_first_page(cache, mock_youtube_client):
    mock_youtube_client.search.return_value = {
        "items": [make_search_item("a"), make_search_item("b")],
        "nextPageToken": "T1",
    }
    pager = SearchPager(mock_youtube_client, cache)

    assert not pager.started
    videos = await pager.start_query("cats")

    assert [v.id for v in videos] == ["a", "b"]
    assert pager.query == "cats"
    assert pager.next_page_token == "T1"
    assert pager.has_more
    mock_youtube_client.search.assert_awaited_once_with("cats", None)

@pytest.mark.asyncio
async def test_fetch_next_page_uses_stored_token(cache, mock_youtube_client):
    mock_youtube_client.search.side_effect = [
        {"items": [make_search_item("a")], "nextPageToken": "T1"},
        {"items": [make_search_item("b")]},
    ]
    pager = SearchPager(mock_youtube_client, cache)

    await pager.start_query("cats")
    videos = await pager.fetch_next_page()

    assert [v.id for v in videos] == ["b"]
    assert mock_youtube_client.search.await_args_list[1].args == ("cats", "T1")
    assert pager.is_exhausted
    assert not pager.has_more

@pytest.mark.asyncio
async def test_new_query_discards_previous_token(cache, mock_youtube_client):
    mock_youtube_client.search.side_effect = [
        {"items": [make_search_item("a")], "nextPageToken": "T1"},
        {"items": [make_search_item("b")], "nextPageToken": "T2"},
        {"items": [make_search_item("c")]},
    ]
    pager = SearchPager(mock_youtube_client, cache)

    await pager.start_query("cats")
    await pager.start_query("dogs")
    await pager.fetch_next_page()

    calls = [call.args for call in mock_youtube_client.search.await_args_list]
    assert calls == [("cats", None), ("dogs", None), ("dogs", "T2")]

@pytest.mark.asyncio
async def test_same_query_again_starts_from_first_page(cache, mock_youtube_client):
    mock_youtube_client.search.return_value = {"items": [make_search_item("a")], "nextPageToken": "T1"}
    pager = SearchPager(mock_youtube_client, cache)

    await pager.start_query("cats")
    await pager.start_query("cats")

    assert mock_youtube_client.search.await_args_list[1].args == ("cats", None)

@pytest.mark.asyncio
async def test_fetch_next_page_without_start_returns_nothing(cache, mock_youtube_client):
    pager = SearchPager(mock_youtube_client, cache)
    assert await pager.fetch_next_page() == []
    mock_youtube_client.search.assert_not_awaited()

@pytest.mark.asyncio
async def test_fetch_next_page_when_exhausted_returns_nothing(cache, mock_youtube_client):
    mock_youtube_client.search.return_value = {"items": [make_search_item("a")]}
    pager = SearchPager(mock_youtube_client, cache)

    await pager.start_query("cats")
    assert await pager.fetch_next_page() == []
    assert mock_youtube_client.search.await_count == 1

@pytest.mark.asyncio
async def test_fetch_failure_returns_none(cache, mock_youtube_client):
    mock_youtube_client.search.side_effect = [
        {"items": [make_search_item("a")], "nextPageToken": "T1"},
        FetchError("quota exceeded"),
    ]
    pager = SearchPager(mock_youtube_client, cache)

    await pager.start_query("cats")
    assert await pager.fetch_next_page() is None
    # Token kept so the user can retry
    assert pager.next_page_token == "T1"
    assert not pager.loading

@pytest.mark.asyncio
async def test_failed_first_page_leaves_session_unstarted(cache, mock_youtube_client):
    mock_youtube_client.search.side_effect = FetchError("offline")
    pager = SearchPager(mock_youtube_client, cache)

    assert await pager.start_query("cats") is None
    assert not pager.started
    assert await pager.fetch_next_page() == []

@pytest.mark.asyncio
async def test_no_results_is_an_empty_list(cache, mock_youtube_client):
    pager = SearchPager(mock_youtube_client, cache)
    assert await pager.start_query("nothing matches") == []
    assert pager.is_exhausted

@pytest.mark.asyncio
async def test_blank_query_is_rejected(cache, mock_youtube_client):
    pager = SearchPager(mock_youtube_client, cache)
    with pytest.raises(ValidationError):
        await pager.start_query("   ")
    mock_youtube_client.search.assert_not_awaited()

@pytest.mark.asyncio
async def test_malformed_items_are_skipped(cache, mock_youtube_client):
    broken = make_search_item("bad")
    del broken["snippet"]["thumbnails"]
    mock_youtube_client.search.return_value = {"items": [broken, make_search_item("good")]}
    pager = SearchPager(mock_youtube_client, cache)

    videos = await pager.start_query("cats")
    assert [v.id for v in videos] == ["good"]

@pytest.mark.asyncio
async def test_non_list_items_count_as_failure(cache, mock_youtube_client):
    mock_youtube_client.search.return_value = {"items": "oops", "nextPageToken": "T1"}
    pager = SearchPager(mock_youtube_client, cache)

    assert await pager.start_query("cats") is None
    assert not pager.started


class StallingClient:
    """Holds the first search until released so a second query can overtake it."""

    def __init__(self):
        self.release = asyncio.Event()
        self.calls = []

    async def search(self, query, page_token=None):
        self.calls.append((query, page_token))
        if len(self.calls) == 1:
            await self.release.wait()
            return {"items": [make_search_item("stale")], "nextPageToken": "STALE"}
        return {"items": [make_search_item("fresh")], "nextPageToken": "FRESH"}


@pytest.mark.asyncio
async def test_stale_response_is_discarded(cache):
    client = StallingClient()
    pager = SearchPager(client, cache)

    first = asyncio.create_task(pager.start_query("cats"))
    await asyncio.sleep(0)
    second = await pager.start_query("dogs")
    client.release.set()
    stale = await first

    assert stale == []
    assert [v.id for v in second] == ["fresh"]
    assert pager.query == "dogs"
    assert pager.next_page_token == "FRESH"
    assert not pager.loading


@pytest.mark.asyncio
async def test_watched_snapshot_and_live_status(cache, mock_youtube_client):
    cache.save("a")
    cache.toggle_watched("a")
    mock_youtube_client.search.return_value = {"items": [make_search_item("a"), make_search_item("b")]}
    pager = SearchPager(mock_youtube_client, cache)

    videos = await pager.start_query("cats")
    assert [v.watched for v in videos] == [True, False]

    # Status follows the cache, not the fetched items
    cache.save("b")
    cache.toggle_watched("a")
    assert pager.status("a").model_dump() == {"saved": True, "watched": False}
    assert pager.status("b").model_dump() == {"saved": True, "watched": False}
    assert pager.status("c").model_dump() == {"saved": False, "watched": False}
    assert videos[0].watched is True

@pytest.mark.asyncio
async def test_lookup_videos_keeps_remote_order(cache, mock_youtube_client):
    lookup_b = make_search_item("b")
    lookup_b["id"] = "b"
    lookup_a = make_search_item("a")
    lookup_a["id"] = "a"
    mock_youtube_client.videos.return_value = {"items": [lookup_b, lookup_a]}
    pager = SearchPager(mock_youtube_client, cache)

    videos = await pager.lookup_videos(["a", "b"])

    assert [v.id for v in videos] == ["b", "a"]
    mock_youtube_client.videos.assert_awaited_once_with(["a", "b"])

@pytest.mark.asyncio
async def test_lookup_videos_edge_cases(cache, mock_youtube_client):
    pager = SearchPager(mock_youtube_client, cache)
    assert await pager.lookup_videos([]) == []
    mock_youtube_client.videos.assert_not_awaited()

    mock_youtube_client.videos.side_effect = FetchError("offline")
    assert await pager.lookup_videos(["a"]) is None

@pytest.mark.asyncio
async def test_iter_query_walks_all_pages(cache, mock_youtube_client):
    mock_youtube_client.search.side_effect = [
        {"items": [make_search_item("a"), make_search_item("b")], "nextPageToken": "T1"},
        {"items": [make_search_item("c")], "nextPageToken": "T2"},
        {"items": [make_search_item("d")]},
    ]
    pager = SearchPager(mock_youtube_client, cache)

    ids = [video.id async for video in pager.iter_query("cats")]

    assert ids == ["a", "b", "c", "d"]
    assert pager.is_exhausted

@pytest.mark.asyncio
async def test_iter_query_respects_max_pages(cache, mock_youtube_client):
    mock_youtube_client.search.return_value = {"items": [make_search_item("a")], "nextPageToken": "T"}
    pager = SearchPager(mock_youtube_client, cache)

    ids = [video.id async for video in pager.iter_query("cats", max_pages=2)]

    assert ids == ["a", "a"]
    assert mock_youtube_client.search.await_count == 2

@pytest.mark.asyncio
async def test_iter_query_skips_empty_page_with_token(cache, mock_youtube_client):
    mock_youtube_client.search.side_effect = [
        {"items": [make_search_item("a")], "nextPageToken": "T1"},
        {"items": [], "nextPageToken": "T2"},
        {"items": [make_search_item("c")]},
    ]
    pager = SearchPager(mock_youtube_client, cache)

    ids = [video.id async for video in pager.iter_query("cats")]

    assert ids == ["a", "c"]
    assert pager.is_exhausted

@pytest.mark.asyncio
async def test_iter_query_stops_on_failure(cache, mock_youtube_client):
    mock_youtube_client.search.side_effect = [
        {"items": [make_search_item("a")], "nextPageToken": "T1"},
        FetchError("offline"),
    ]
    pager = SearchPager(mock_youtube_client, cache)

    ids = [video.id async for video in pager.iter_query("cats")]

    assert ids == ["a"]
    assert pager.has_more


class FailingStallingClient(StallingClient):
    """Like StallingClient, but the held search fails once released."""

    async def search(self, query, page_token=None):
        self.calls.append((query, page_token))
        if len(self.calls) == 1:
            await self.release.wait()
            raise FetchError("boom")
        return {"items": [make_search_item("fresh")], "nextPageToken": "FRESH"}


@pytest.mark.asyncio
async def test_stale_failure_is_discarded(cache):
    client = FailingStallingClient()
    pager = SearchPager(client, cache)

    first = asyncio.create_task(pager.start_query("cats"))
    await asyncio.sleep(0)
    second = await pager.start_query("dogs")
    client.release.set()
    stale = await first

    assert stale == []
    assert [v.id for v in second] == ["fresh"]
    assert pager.query == "dogs"
    assert pager.next_page_token == "FRESH"
    assert not pager.loading
