"""Tests for stream key issuance and playback source resolution."""

import re
from unittest.mock import AsyncMock

import pytest

from stream_delivery.core.config import LiveConfig
from stream_delivery.streams.application.live_service import LiveSourceResolver
from stream_delivery.streams.domain.exceptions import KeyIssueFailure, NotFound
from stream_delivery.streams.domain.interfaces import StreamStore
from stream_delivery.streams.domain.models import NO_STREAM_KEY

from conftest import make_stream


@pytest.fixture
def mock_store():
    store = AsyncMock(spec=StreamStore)
    store.stream_key_in_use.return_value = False
    return store


@pytest.fixture
def resolver(mock_store):
    return LiveSourceResolver(mock_store, LiveConfig())


class TestKeyIssue:

    def test_key_format(self, resolver):
        key = resolver.issue_key()
        assert re.fullmatch(r"[0-9a-f]{32}", key)

    def test_keys_differ(self, resolver):
        keys = {resolver.issue_key() for _ in range(200)}
        assert len(keys) == 200

    async def test_unverified_by_default(self, resolver, mock_store):
        key = await resolver.new_key()
        assert key
        mock_store.stream_key_in_use.assert_not_awaited()

    async def test_verified_retries_collision(self, mock_store):
        resolver = LiveSourceResolver(mock_store, LiveConfig(verify_key_uniqueness=True))
        mock_store.stream_key_in_use.side_effect = [True, False]

        key = await resolver.new_key()

        assert key
        assert mock_store.stream_key_in_use.await_count == 2

    async def test_verified_gives_up(self, mock_store):
        resolver = LiveSourceResolver(mock_store, LiveConfig(verify_key_uniqueness=True, max_issue_attempts=3))
        mock_store.stream_key_in_use.return_value = True

        with pytest.raises(KeyIssueFailure) as exc_info:
            await resolver.new_key()

        assert exc_info.value.status_code == 500
        assert mock_store.stream_key_in_use.await_count == 3


class TestLatestKey:

    async def test_user_with_streams(self, resolver, mock_store):
        mock_store.latest_stream_key_for_user.return_value = "abc"
        assert await resolver.latest_key_for(4) == "abc"
        mock_store.latest_stream_key_for_user.assert_awaited_once_with(4)

    async def test_user_without_streams(self, resolver, mock_store):
        mock_store.latest_stream_key_for_user.return_value = None
        assert await resolver.latest_key_for(4) == NO_STREAM_KEY

    async def test_anonymous_caller(self, resolver, mock_store):
        assert await resolver.latest_key_for(None) == ""
        mock_store.latest_stream_key_for_user.assert_not_awaited()

    async def test_most_recent_stream_wins(self, store):
        resolver = LiveSourceResolver(store, LiveConfig())
        await store.create_stream({"user_id": 1, "stream_key": "old", "created_at": make_stream(1, 1, minutes=0).created_at})
        await store.create_stream({"user_id": 1, "stream_key": "new", "created_at": make_stream(1, 1, minutes=5).created_at})

        assert await resolver.latest_key_for(1) == "new"


class TestSources:

    def test_live_source(self, resolver):
        assert resolver.resolve_live_source("abc123") == "/live/abc123.flv"

    def test_live_source_respects_config(self, mock_store):
        resolver = LiveSourceResolver(mock_store, LiveConfig(namespace="/hls", extension="m3u8"))
        assert resolver.resolve_live_source("abc") == "/hls/abc.m3u8"

    def test_recorded_source(self, resolver):
        stream = make_stream(1, 1, path="/live/abc/2021-05-01-12-00-00.flv")
        assert resolver.resolve_recorded_source(stream) == "/live/abc/2021-05-01-12-00-00.mp4"

    def test_recorded_source_without_recording(self, resolver):
        with pytest.raises(NotFound):
            resolver.resolve_recorded_source(make_stream(1, 1))

    async def test_active_streams_get_live_sources(self, resolver, mock_store):
        mock_store.active_streams.return_value = [make_stream(1, 1, stream_key="k1")]

        entries = await resolver.active_streams("games")

        assert [entry.source for entry in entries] == ["/live/k1.flv"]
        mock_store.active_streams.assert_awaited_once_with("games")

    async def test_finished_streams_for_user(self, resolver, mock_store):
        mock_store.finished_streams_for_user.return_value = [make_stream(1, 3, path="/live/k/rec.flv")]

        entries = await resolver.finished_streams_for_user(3)

        assert [entry.source for entry in entries] == ["/live/k/rec.mp4"]


class TestFinalizeRecording:

    async def test_attaches_recording(self, store):
        resolver = LiveSourceResolver(store, LiveConfig())
        live = await store.create_stream({"user_id": 1, "stream_key": "k1", "title": "Live"})

        finished = await resolver.finalize_recording("k1", "/live/k1/rec.flv")

        assert finished.id == live.id
        assert finished.is_finished
        assert resolver.resolve_recorded_source(finished) == "/live/k1/rec.mp4"

    async def test_unknown_key(self, resolver, mock_store):
        mock_store.attach_recording.return_value = None
        with pytest.raises(NotFound):
            await resolver.finalize_recording("nope", "/live/nope/rec.flv")
