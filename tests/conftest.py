"""Shared fixtures for the stream delivery tests."""

import asyncio
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytz

from stream_delivery.core.config import Config, StorageConfig
from stream_delivery.streams.domain.interfaces import FrameExtractor
from stream_delivery.streams.domain.models import Stream, Tag, resolve_media_path
from stream_delivery.streams.infrastructure.repositories import JsonStreamStore

BASE_TIME = datetime(2021, 5, 1, 12, 0, 0, tzinfo=pytz.UTC)

SUBPROCESS = "stream_delivery.streams.infrastructure.transcoders.asyncio.create_subprocess_exec"


class FakeFrameExtractor(FrameExtractor):
    """Records calls and writes a tiny JPEG-looking file"""

    def __init__(self, delay: float = 0.0, fail_with: Optional[Exception] = None):
        self.calls: List[Tuple[Path, Path, str]] = []
        self.delay = delay
        self.fail_with = fail_with

    async def extract_frame(self, input_path: Path, output_path: Path, seek_offset: str) -> Path:
        self.calls.append((input_path, output_path, seek_offset))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(b"\xff\xd8\xff\xe0preview")
        return output_path


def make_stream(
    stream_id: int,
    user_id: int,
    path: Optional[str] = None,
    minutes: int = 0,
    title: str = "",
    tags: Tuple[str, ...] = (),
    stream_key: Optional[str] = None,
) -> Stream:
    return Stream(
        id=stream_id,
        user_id=user_id,
        stream_key=stream_key or f"key{stream_id}",
        title=title or f"stream {stream_id}",
        created_at=BASE_TIME + timedelta(minutes=minutes),
        path=path,
        tags=frozenset(Tag(id=i, name=name) for i, name in enumerate(tags, start=1)),
    )


def write_recording(config: Config, media_path: str, size: int) -> bytes:
    """Write random bytes at the on-disk location of media_path"""
    data = os.urandom(size)
    file_path = resolve_media_path(config.media_root, media_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_bytes(data)
    return data


@pytest.fixture
def config(tmp_path):
    """Default configuration rooted in a temporary media directory"""
    config = Config()
    config.storage = StorageConfig(
        media_root=str(tmp_path / "media"),
        store_file=str(tmp_path / "media" / "streams.json"),
    )
    config.system.log_file = None
    return config


@pytest.fixture
def store(config):
    return JsonStreamStore(config.storage.store_file)


@pytest.fixture
def frame_extractor():
    return FakeFrameExtractor()


def fake_ffmpeg(returncode: int = 0, stderr: bytes = b"", writes_output: bool = True) -> AsyncMock:
    """Stand-in for create_subprocess_exec; the process writes the file named last on its command line"""

    async def create(*cmd, **kwargs):
        process = MagicMock()
        process.returncode = returncode

        async def communicate():
            if writes_output:
                Path(cmd[-1]).write_bytes(b"\xff\xd8\xff\xe0frame")
            return b"", stderr

        process.communicate = communicate
        process.wait = AsyncMock(return_value=returncode)
        return process

    return AsyncMock(side_effect=create)
