"""
Stream API Routes.

FastAPI route definitions for stream delivery, the discovery feed and stream keys.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Request

from .controllers import FeedController, PreviewController, StreamController, StreamingController
from .schemas import (
    CreateStreamRequest,
    FinalizeRecordingRequest,
    LatestStreamKeyResponse,
    StreamKeyResponse,
    StreamResponse,
    TagResponse,
)


def get_caller_id(x_user_id: Optional[int] = Header(None, description="Authenticated caller, set by the session layer")) -> Optional[int]:
    """Caller identity as resolved by the authentication layer in front of this service"""
    return x_user_id


def create_stream_routes(
    streaming_controller: StreamingController,
    preview_controller: PreviewController,
    feed_controller: FeedController,
    stream_controller: StreamController,
) -> APIRouter:
    """Create stream API routes with dependency injection"""

    router = APIRouter(prefix="/streams", tags=["streams"])

    @router.get("", response_model=List[StreamResponse])
    async def list_active_streams(search: Optional[str] = Query(None, description="Match title or tag")):
        """
        List live streams.

        Each stream carries its live playback `source`.
        """
        return await feed_controller.active_streams(search)

    @router.post("", response_model=StreamResponse)
    async def create_stream(body: CreateStreamRequest, caller_id: Optional[int] = Depends(get_caller_id)):
        """
        Create a stream for the caller with a key from `/keys/new`.

        - **title**: Stream title
        - **stream_key**: Key the broadcaster will publish with
        - **tags**: Tag names, created when unknown
        """
        return await stream_controller.create_stream(caller_id, body)

    @router.get("/selection/{amount}", response_model=List[StreamResponse])
    async def streams_selection(amount: int, search: Optional[str] = Query(None, description="Match title or tag")):
        """
        Discovery feed of at most **amount** finished streams.

        Users take turns: every user contributes one stream before anyone
        contributes a second. Each stream carries its recorded `source`.
        """
        return await feed_controller.selection(amount, search)

    @router.get("/user/{user_id}", response_model=List[StreamResponse])
    async def user_finished_streams(user_id: int):
        """
        List a user's finished streams, most recent first.
        """
        return await feed_controller.user_finished_streams(user_id)

    @router.post("/recordings", response_model=StreamResponse)
    async def finalize_recording(body: FinalizeRecordingRequest):
        """
        Attach a recording to the live stream publishing with **stream_key**.

        Called by the ingest server once a broadcast ends.
        """
        return await stream_controller.finalize_recording(body)

    @router.get("/{stream_id}", response_model=StreamResponse)
    async def get_stream(stream_id: int):
        return await stream_controller.get_stream(stream_id)

    @router.get("/{stream_id}/video")
    async def stream_video(stream_id: int, request: Request):
        """
        Stream a recording with HTTP range requests.

        A `Range` header is required; each response carries at most one chunk
        (206 Partial Content). Request the next chunk from the last byte + 1.

        Usage in HTML5:
        ```html
        <video controls>
            <source src="/streams/{stream_id}/video" type="video/mp4">
        </video>
        ```
        """
        return await streaming_controller.stream_video(stream_id, request)

    @router.get("/{stream_id}/preview")
    async def get_preview(stream_id: int):
        """
        Preview frame of a recording as JPEG, extracted on the first request.
        """
        return await preview_controller.get_preview(stream_id)

    return router


def create_key_routes(stream_controller: StreamController) -> APIRouter:
    """Create stream key routes"""

    router = APIRouter(prefix="/keys", tags=["keys"])

    @router.get("/new", response_model=StreamKeyResponse)
    async def new_key():
        """
        Issue a new stream key.
        """
        return await stream_controller.new_key()

    @router.get("/latest", response_model=LatestStreamKeyResponse)
    async def latest_key(caller_id: Optional[int] = Depends(get_caller_id)):
        """
        Key of the caller's most recent stream, or an empty string.
        """
        return await stream_controller.latest_key(caller_id)

    return router


def create_tag_routes(stream_controller: StreamController) -> APIRouter:
    router = APIRouter(prefix="/tags", tags=["tags"])

    @router.get("", response_model=List[TagResponse])
    async def list_tags():
        return await stream_controller.tags()

    return router
