"""
Range Streaming Application Service.

Serves recorded streams in bounded byte ranges. A response never carries more
than one chunk; players re-request from the next offset to continue.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Dict, Optional

import aiofiles
import aiofiles.os

from ...core.config import StreamingConfig
from ..domain.exceptions import BadRequest, NotFound, RangeNotSatisfiable
from ..domain.interfaces import StreamStore
from ..domain.models import Stream, StreamRange, resolve_media_path

_DIGITS = re.compile(r"\d+")


@dataclass(frozen=True)
class RangeStreamPlan:
    """A validated range over one recording, ready to be flushed"""
    stream: Stream
    file_path: Path
    file_size: int
    range: StreamRange
    content_type: str

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Content-Range": self.range.content_range(self.file_size),
            "Accept-Ranges": "bytes",
            "Content-Length": str(self.range.size),
            "Content-Type": self.content_type,
        }


def parse_range_start(range_header: Optional[str]) -> int:
    """
    Extract the start byte from a Range header.

    The first run of decimal digits is the start offset, anything after it
    (including an end offset) is ignored: "bytes=500-" and "bytes=500-999"
    both start at 500.
    """
    if range_header is None or not range_header.strip():
        raise BadRequest("Requires Range header")

    match = _DIGITS.search(range_header)
    if match is None:
        raise BadRequest(f"Malformed Range header: {range_header!r}", {"range": range_header})

    return int(match.group())


def plan_range(file_size: int, start: int, chunk_size: int) -> StreamRange:
    """Clamp a range starting at start to one chunk and to the end of the file"""
    if start >= file_size:
        raise RangeNotSatisfiable(start, file_size)

    end = min(start + chunk_size - 1, file_size - 1)
    return StreamRange(start=start, end=end)


class RangeStreamer:
    """Application service for range-based video delivery"""

    def __init__(self, stream_store: StreamStore, config: StreamingConfig, media_root: Path):
        self.stream_store = stream_store
        self.config = config
        self.media_root = Path(media_root)
        self.logger = logging.getLogger(__name__)

    @property
    def chunk_size(self) -> int:
        return self.config.chunk_size

    async def open_range(self, stream_id: int, range_header: Optional[str]) -> RangeStreamPlan:
        """
        Resolve a stream's recording and plan the range to send.

        Raises:
            BadRequest: the Range header is missing or carries no offset
            NotFound: unknown stream, no recording, or recording missing on disk
            RangeNotSatisfiable: the start offset lies beyond the file
        """
        start = parse_range_start(range_header)

        stream = await self.stream_store.stream_by_id(stream_id)
        if stream is None:
            raise NotFound("Stream", stream_id)
        if not stream.is_finished:
            raise NotFound("Recording", stream_id, message=f"Stream {stream_id} has no recording")

        file_path = resolve_media_path(self.media_root, stream.path)
        try:
            stat_result = await aiofiles.os.stat(file_path)
        except FileNotFoundError:
            self.logger.warning(f"Recording for stream {stream_id} missing on disk: {file_path}")
            raise NotFound("Recording", stream_id, message=f"Recording file for stream {stream_id} not found")

        stream_range = plan_range(stat_result.st_size, start, self.chunk_size)
        self.logger.debug(f"Serving stream {stream_id} range {stream_range.start}-{stream_range.end}/{stat_result.st_size}")

        return RangeStreamPlan(
            stream=stream,
            file_path=file_path,
            file_size=stat_result.st_size,
            range=stream_range,
            content_type=self.config.content_type,
        )

    async def iter_range(self, plan: RangeStreamPlan) -> AsyncIterator[bytes]:
        """Yield the planned bytes; the file handle is closed on every exit path"""
        async with aiofiles.open(plan.file_path, "rb") as f:
            await f.seek(plan.range.start)
            remaining = plan.range.size

            while remaining > 0:
                chunk = await f.read(min(self.config.read_block_size, remaining))
                if not chunk:
                    # File shrank after it was planned
                    self.logger.warning(f"Short read on {plan.file_path}, {remaining} bytes unsent")
                    break
                remaining -= len(chunk)
                yield chunk
