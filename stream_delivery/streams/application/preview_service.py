"""
Preview Application Service.

Produces the preview JPEG of a recording on first request and serves the
file already on disk afterwards.
"""

import logging
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Optional

import aiofiles.os

from ...core.config import PreviewConfig
from ...core.logging_config import get_performance_logger
from ..domain.exceptions import NotFound
from ..domain.interfaces import FrameExtractor, StreamStore
from ..domain.models import change_extension, resolve_media_path
from ..infrastructure.locking import KeyedLock


class PreviewCache:
    """
    Lazy, idempotent preview extraction.

    The artifact lives next to the recording with a .jpg extension, so its
    presence on disk is the cache. Without serialize_generation, two first
    requests racing for the same recording may both run the extractor; the
    second simply overwrites the first's identical output.
    """

    def __init__(
        self,
        stream_store: StreamStore,
        frame_extractor: FrameExtractor,
        config: PreviewConfig,
        media_root: Path,
    ):
        self.stream_store = stream_store
        self.frame_extractor = frame_extractor
        self.config = config
        self.media_root = Path(media_root)
        self.logger = logging.getLogger(__name__)
        self._locks: Optional[KeyedLock] = KeyedLock() if config.serialize_generation else None

    def preview_path_for(self, recording_path: str) -> Path:
        """On-disk artifact path derived from a recording path"""
        return resolve_media_path(self.media_root, change_extension(recording_path, "jpg"))

    async def get_preview(self, stream_id: int) -> Path:
        """
        Return the preview of a stream's recording, extracting it if absent.

        Raises:
            NotFound: unknown stream, no recording, or recording missing on disk
            ExternalToolFailure: the extractor failed
        """
        stream = await self.stream_store.stream_by_id(stream_id)
        if stream is None:
            raise NotFound("Stream", stream_id)
        if not stream.is_finished:
            raise NotFound("Recording", stream_id, message=f"Stream {stream_id} has no recording")

        recording = resolve_media_path(self.media_root, stream.path)
        artifact = self.preview_path_for(stream.path)

        async with AsyncExitStack() as stack:
            if self._locks is not None:
                await stack.enter_async_context(self._locks.hold(str(artifact)))

            if await aiofiles.os.path.exists(artifact):
                return artifact

            if not await aiofiles.os.path.exists(recording):
                raise NotFound("Preview source", stream_id, message=f"Recording file for stream {stream_id} not found")

            performance = get_performance_logger("preview")
            performance.start_timer(f"preview extraction for stream {stream_id}")
            await self.frame_extractor.extract_frame(recording, artifact, self.config.seek_offset)
            performance.end_timer(f"preview extraction for stream {stream_id}")

        self.logger.info(f"Generated preview for stream {stream_id}: {artifact}")
        return artifact
