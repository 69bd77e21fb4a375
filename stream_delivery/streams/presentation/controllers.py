"""
Stream HTTP Controllers.

Handle HTTP requests and responses for stream operations. Domain errors
propagate to the API server's exception handler.
"""

import logging
from typing import List, Optional

from fastapi import HTTPException, Request, Response
from fastapi.responses import FileResponse, StreamingResponse

from ..application.feed_service import FairFeedInterleaver
from ..application.live_service import LiveSourceResolver
from ..application.preview_service import PreviewCache
from ..application.streaming_service import RangeStreamer
from ..domain.exceptions import NotFound
from ..domain.interfaces import StreamStore
from .schemas import (
    CreateStreamRequest,
    FinalizeRecordingRequest,
    LatestStreamKeyResponse,
    StreamKeyResponse,
    StreamResponse,
    TagResponse,
)


class StreamingController:
    """Controller for recorded video delivery"""

    def __init__(self, range_streamer: RangeStreamer):
        self.range_streamer = range_streamer
        self.logger = logging.getLogger(__name__)

    async def stream_video(self, stream_id: int, request: Request) -> Response:
        """Send one chunk of the recording starting at the requested offset"""
        plan = await self.range_streamer.open_range(stream_id, request.headers.get("range"))

        return StreamingResponse(
            self.range_streamer.iter_range(plan),
            status_code=206,
            headers=plan.headers,
            media_type=plan.content_type,
        )


class PreviewController:
    """Controller for preview images"""

    def __init__(self, preview_cache: PreviewCache):
        self.preview_cache = preview_cache
        self.logger = logging.getLogger(__name__)

    async def get_preview(self, stream_id: int) -> Response:
        preview_path = await self.preview_cache.get_preview(stream_id)
        return FileResponse(preview_path, media_type="image/jpeg", headers={"Cache-Control": "public, max-age=3600"})


class FeedController:
    """Controller for stream listings"""

    def __init__(self, feed: FairFeedInterleaver, live_resolver: LiveSourceResolver):
        self.feed = feed
        self.live_resolver = live_resolver
        self.logger = logging.getLogger(__name__)

    async def selection(self, amount: int, search_query: Optional[str]) -> List[StreamResponse]:
        entries = await self.feed.select(amount, search_query)
        return [StreamResponse.from_entry(entry) for entry in entries]

    async def active_streams(self, search_query: Optional[str]) -> List[StreamResponse]:
        entries = await self.live_resolver.active_streams(search_query)
        return [StreamResponse.from_entry(entry) for entry in entries]

    async def user_finished_streams(self, user_id: int) -> List[StreamResponse]:
        entries = await self.live_resolver.finished_streams_for_user(user_id)
        return [StreamResponse.from_entry(entry) for entry in entries]


class StreamController:
    """Controller for stream records and keys"""

    def __init__(self, stream_store: StreamStore, live_resolver: LiveSourceResolver):
        self.stream_store = stream_store
        self.live_resolver = live_resolver
        self.logger = logging.getLogger(__name__)

    async def get_stream(self, stream_id: int) -> StreamResponse:
        stream = await self.stream_store.stream_by_id(stream_id)
        if stream is None:
            raise NotFound("Stream", stream_id)

        if stream.is_finished:
            source = self.live_resolver.resolve_recorded_source(stream)
        else:
            source = self.live_resolver.resolve_live_source(stream.stream_key)
        return StreamResponse.from_stream(stream, source)

    async def create_stream(self, caller_id: Optional[int], request: CreateStreamRequest) -> StreamResponse:
        """Create a stream owned by the caller and attach its tags"""
        if caller_id is None:
            raise HTTPException(status_code=401, detail="Unauthorized")

        stream = await self.stream_store.create_stream({
            "user_id": caller_id,
            "stream_key": request.stream_key,
            "title": request.title,
            "preview": request.preview,
        })
        if request.tags:
            stream = await self.stream_store.tag_stream(stream, request.tags)

        return StreamResponse.from_stream(stream, self.live_resolver.resolve_live_source(stream.stream_key))

    async def finalize_recording(self, request: FinalizeRecordingRequest) -> StreamResponse:
        stream = await self.live_resolver.finalize_recording(request.stream_key, request.path)
        return StreamResponse.from_stream(stream, self.live_resolver.resolve_recorded_source(stream))

    async def new_key(self) -> StreamKeyResponse:
        return StreamKeyResponse(key=await self.live_resolver.new_key())

    async def latest_key(self, caller_id: Optional[int]) -> LatestStreamKeyResponse:
        return LatestStreamKeyResponse(stream_key=await self.live_resolver.latest_key_for(caller_id))

    async def tags(self) -> List[TagResponse]:
        return [TagResponse(id=tag.id, name=tag.name) for tag in await self.stream_store.tags()]
