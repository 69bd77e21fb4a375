"""
Live Source Application Service.

Issues stream keys and maps streams to the sources players load: the live
ingest namespace while a stream is running, the recording once it has finished.
"""

import logging
import secrets
from typing import Iterable, List, Optional

from ...core.config import LiveConfig
from ..domain.exceptions import KeyIssueFailure, NotFound
from ..domain.interfaces import StreamStore
from ..domain.models import NO_STREAM_KEY, FeedEntry, Stream, change_extension


class LiveSourceResolver:
    """Application service for stream keys and playback sources"""

    def __init__(self, stream_store: StreamStore, config: LiveConfig):
        self.stream_store = stream_store
        self.config = config
        self.logger = logging.getLogger(__name__)

    def issue_key(self) -> str:
        """
        Issue a fresh key from two independent random strings.

        Not checked against existing keys; use issue_verified_key when the key
        must be unique before it is persisted.
        """
        return secrets.token_hex(self.config.key_bytes) + secrets.token_hex(self.config.key_bytes)

    async def issue_verified_key(self) -> str:
        """Issue a key that no stored stream uses yet"""
        for attempt in range(1, self.config.max_issue_attempts + 1):
            key = self.issue_key()
            if not await self.stream_store.stream_key_in_use(key):
                return key
            self.logger.warning(f"Issued stream key collided with an existing stream (attempt {attempt})")

        raise KeyIssueFailure(self.config.max_issue_attempts)

    async def new_key(self) -> str:
        """Issue a key, verified against the store when configured to"""
        if self.config.verify_key_uniqueness:
            return await self.issue_verified_key()
        return self.issue_key()

    async def latest_key_for(self, user_id: Optional[int]) -> str:
        """Key of the user's most recent stream, or NO_STREAM_KEY"""
        if user_id is None:
            return NO_STREAM_KEY

        key = await self.stream_store.latest_stream_key_for_user(user_id)
        return key or NO_STREAM_KEY

    def resolve_live_source(self, stream_key: str) -> str:
        return f"{self.config.namespace}/{stream_key}.{self.config.extension}"

    def resolve_recorded_source(self, stream: Stream) -> str:
        """Recording path with the on-demand container extension"""
        if not stream.is_finished:
            raise NotFound("Recording", stream.id, message=f"Stream {stream.id} has no recording")
        return change_extension(stream.path, self.config.recorded_extension)

    def annotate_live(self, streams: Iterable[Stream]) -> List[FeedEntry]:
        return [FeedEntry(stream=stream, source=self.resolve_live_source(stream.stream_key)) for stream in streams]

    def annotate_recorded(self, streams: Iterable[Stream]) -> List[FeedEntry]:
        return [FeedEntry(stream=stream, source=self.resolve_recorded_source(stream)) for stream in streams]

    async def active_streams(self, search_query: Optional[str] = None) -> List[FeedEntry]:
        """Live streams with their live sources"""
        streams = await self.stream_store.active_streams(search_query)
        return self.annotate_live(streams)

    async def finished_streams_for_user(self, user_id: int) -> List[FeedEntry]:
        """One user's recordings with their on-demand sources"""
        streams = await self.stream_store.finished_streams_for_user(user_id)
        return self.annotate_recorded(streams)

    async def finalize_recording(self, stream_key: str, path: str) -> Stream:
        """Attach a finished recording to the live stream owning stream_key"""
        stream = await self.stream_store.attach_recording(stream_key, path)
        if stream is None:
            raise NotFound("Live stream", stream_key, message="No live stream uses this key")

        self.logger.info(f"Finalized recording for stream {stream.id}: {path}")
        return stream
