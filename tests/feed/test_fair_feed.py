"""Tests for the round-robin discovery feed."""

import itertools
from collections import Counter
from unittest.mock import AsyncMock

import pytest

from stream_delivery.core.config import LiveConfig
from stream_delivery.streams.application.feed_service import FairFeedInterleaver, group_by_user, interleave
from stream_delivery.streams.application.live_service import LiveSourceResolver
from stream_delivery.streams.domain.interfaces import StreamStore
from stream_delivery.streams.domain.models import UserRef

from conftest import make_stream


def recorded(stream_id, user_id, minutes=0):
    return make_stream(stream_id, user_id, path=f"/live/key{stream_id}/rec.flv", minutes=minutes)


@pytest.fixture
def a_and_b():
    a1, a2, a3 = recorded(1, 1), recorded(2, 1), recorded(3, 1)
    b1 = recorded(4, 2)
    return {1: [a1, a2, a3], 2: [b1]}


class TestInterleave:

    def test_round_robin_order(self, a_and_b):
        a1, a2, _ = a_and_b[1]
        (b1,) = a_and_b[2]
        assert interleave(a_and_b, 3) == [a1, b1, a2]

    def test_exhausts_all_streams(self, a_and_b):
        result = interleave(a_and_b, 10)
        assert [s.id for s in result] == [1, 4, 2, 3]

    @pytest.mark.parametrize("amount", [0, -1, -100])
    def test_non_positive_amount(self, a_and_b, amount):
        assert interleave(a_and_b, amount) == []

    def test_no_candidates(self):
        assert interleave({}, 5) == []

    def test_user_without_streams_is_skipped(self):
        c1 = recorded(7, 3)
        result = interleave({1: [], 3: [c1]}, 2)
        assert result == [c1]

    def test_stops_on_empty_round(self):
        result = interleave({1: [recorded(1, 1)], 2: [recorded(2, 2)]}, 100)
        assert len(result) == 2

    @pytest.mark.parametrize("sizes", [(3, 1), (1, 1, 1), (5, 0, 2), (4, 4), (0, 0), (6, 2, 3, 1)])
    def test_length_and_fairness(self, sizes):
        ids = itertools.count(1)
        groups = {
            user_id: [recorded(next(ids), user_id) for _ in range(size)]
            for user_id, size in enumerate(sizes, start=1)
        }
        total = sum(sizes)

        for amount in range(0, total + 3):
            result = interleave(groups, amount)
            assert len(result) == min(max(amount, 0), total)

            # Nobody gets a second stream while someone with streams left has none
            counts = Counter(stream.user_id for stream in result)
            for user_id, user_streams in groups.items():
                for other_id, other_streams in groups.items():
                    if counts[user_id] >= 2 and len(other_streams) > counts[other_id]:
                        assert counts[other_id] >= counts[user_id] - 1

    def test_keeps_per_user_order(self, a_and_b):
        result = interleave(a_and_b, 4)
        assert [s.id for s in result if s.user_id == 1] == [1, 2, 3]


class TestGroupByUser:

    def test_follows_candidate_ranking(self):
        users = [UserRef(id=2), UserRef(id=1)]
        streams = [recorded(1, 1), recorded(2, 2), recorded(3, 1)]

        groups = group_by_user(users, streams)

        assert list(groups) == [2, 1]
        assert [s.id for s in groups[1]] == [1, 3]

    def test_drops_non_candidates(self):
        groups = group_by_user([UserRef(id=1)], [recorded(1, 1), recorded(2, 9)])
        assert list(groups) == [1]
        assert [s.id for s in groups[1]] == [1]

    def test_candidate_without_streams(self):
        groups = group_by_user([UserRef(id=1), UserRef(id=2)], [recorded(1, 1)])
        assert groups[2] == []


class TestFairFeedInterleaver:

    @pytest.fixture
    def mock_store(self):
        return AsyncMock(spec=StreamStore)

    @pytest.fixture
    def feed(self, mock_store):
        return FairFeedInterleaver(mock_store, LiveSourceResolver(mock_store, LiveConfig()))

    async def test_annotates_recorded_sources(self, feed, mock_store):
        mock_store.users_with_streams.return_value = [UserRef(id=1), UserRef(id=2)]
        mock_store.finished_streams_for_users.return_value = [recorded(1, 1), recorded(2, 1), recorded(3, 2)]

        entries = await feed.select(2, "speedrun")

        assert [entry.stream.id for entry in entries] == [1, 3]
        assert [entry.source for entry in entries] == ["/live/key1/rec.mp4", "/live/key3/rec.mp4"]
        mock_store.users_with_streams.assert_awaited_once_with(2, "speedrun")
        mock_store.finished_streams_for_users.assert_awaited_once_with([1, 2], "speedrun")

    async def test_no_candidates(self, feed, mock_store):
        mock_store.users_with_streams.return_value = []

        assert await feed.select(5) == []
        mock_store.finished_streams_for_users.assert_not_awaited()

    async def test_non_positive_amount_skips_store(self, feed, mock_store):
        assert await feed.select(0) == []
        mock_store.users_with_streams.assert_not_awaited()

    async def test_against_json_store(self, store):
        for minutes, (user_id, key) in enumerate([(1, "a1"), (1, "a2"), (1, "a3"), (2, "b1")]):
            await store.create_stream({
                "user_id": user_id,
                "stream_key": key,
                "title": key,
                "path": f"/live/{key}/rec.flv",
                "created_at": make_stream(1, 1, minutes=minutes).created_at,
            })
        feed = FairFeedInterleaver(store, LiveSourceResolver(store, LiveConfig()))

        entries = await feed.select(3)

        # User 1 ranks first with more streams; each user's newest stream comes first
        assert [entry.stream.stream_key for entry in entries] == ["a3", "b1", "a2"]
