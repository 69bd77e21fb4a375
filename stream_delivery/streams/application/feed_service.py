"""
Fair Feed Application Service.

Builds the discovery feed by visiting users round-robin so a prolific
streamer cannot crowd out a quiet one.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence

from ..domain.interfaces import StreamStore
from ..domain.models import FeedEntry, Stream, UserRef
from .live_service import LiveSourceResolver


def group_by_user(users: Sequence[UserRef], streams: Sequence[Stream]) -> "OrderedDict[int, List[Stream]]":
    """
    Group streams per candidate user.

    Keys follow the candidate ranking and each list keeps the store's order.
    Candidates without streams map to an empty list; streams of users that
    are not candidates are dropped.
    """
    groups: "OrderedDict[int, List[Stream]]" = OrderedDict((user.id, []) for user in users)
    for stream in streams:
        if stream.user_id in groups:
            groups[stream.user_id].append(stream)
    return groups


def interleave(groups: Dict[int, List[Stream]], amount: int) -> List[Stream]:
    """
    Take one stream per user per round until amount is reached or a round adds nothing.

    Users are visited in the mapping's order, so with A=[a1, a2, a3], B=[b1]
    and amount 3 the result is [a1, b1, a2].
    """
    result: List[Stream] = []
    if amount <= 0:
        return result

    lists = list(groups.values())
    position = 0
    while True:
        added = False
        for user_streams in lists:
            if position < len(user_streams):
                result.append(user_streams[position])
                added = True
                if len(result) >= amount:
                    return result
        if not added:
            return result
        position += 1


class FairFeedInterleaver:
    """Application service for the bounded discovery feed"""

    def __init__(self, stream_store: StreamStore, live_resolver: LiveSourceResolver):
        self.stream_store = stream_store
        self.live_resolver = live_resolver
        self.logger = logging.getLogger(__name__)

    async def select(self, amount: int, search_query: Optional[str] = None) -> List[FeedEntry]:
        """Feed of at most amount finished streams, each annotated with its recorded source"""
        if amount <= 0:
            return []

        users = await self.stream_store.users_with_streams(amount, search_query)
        if not users:
            return []

        streams = await self.stream_store.finished_streams_for_users([user.id for user in users], search_query)
        selection = interleave(group_by_user(users, streams), amount)

        self.logger.debug(f"Feed of {len(selection)}/{amount} streams from {len(users)} users (search={search_query!r})")
        return self.live_resolver.annotate_recorded(selection)
