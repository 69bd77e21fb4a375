"""
Frame Extractors.

Single-frame JPEG extraction with FFmpeg, and an OpenCV fallback for hosts
without an ffmpeg binary. Both write to a staging file next to the artifact
and move it into place only on success, so a failed run never leaves a file
at the artifact path.
"""

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import List

import cv2

from ..domain.exceptions import ExternalToolFailure
from ..domain.interfaces import FrameExtractor


def parse_seek_offset(seek_offset: str) -> float:
    """Convert an [[HH:]MM:]SS offset into seconds"""
    seconds = 0.0
    for part in seek_offset.split(":"):
        seconds = seconds * 60 + float(part)
    return seconds


def staging_path_for(output_path: Path) -> Path:
    """Sibling path written before the artifact is published, e.g. x.tmp.jpg"""
    return output_path.with_name(f"{output_path.stem}.tmp{output_path.suffix}")


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


class FFmpegFrameExtractor(FrameExtractor):
    """FFmpeg-based frame extractor"""

    def __init__(self, ffmpeg_binary: str = "ffmpeg", quality: int = 2, timeout_seconds: int = 120):
        self.ffmpeg_binary = ffmpeg_binary
        self.quality = quality
        self.timeout_seconds = timeout_seconds
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def is_available(ffmpeg_binary: str = "ffmpeg") -> bool:
        return shutil.which(ffmpeg_binary) is not None

    async def extract_frame(self, input_path: Path, output_path: Path, seek_offset: str) -> Path:
        """Run ffmpeg once and publish its output at output_path"""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        staging_path = staging_path_for(output_path)

        self.logger.info(f"Extracting preview frame from {input_path} at {seek_offset}")

        try:
            await self._run_ffmpeg(input_path, staging_path, seek_offset)

            if not staging_path.exists():
                raise ExternalToolFailure("ffmpeg", "produced no output", {"output": str(output_path)})

            os.replace(staging_path, output_path)
        finally:
            _discard(staging_path)

        return output_path

    async def _run_ffmpeg(self, input_path: Path, staging_path: Path, seek_offset: str) -> None:
        cmd = self._build_ffmpeg_command(input_path, staging_path, seek_offset)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            self.logger.error(f"Could not start {self.ffmpeg_binary}: {e}")
            raise ExternalToolFailure("ffmpeg", f"could not start {self.ffmpeg_binary}: {e}")

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            self.logger.error(f"FFmpeg timed out after {self.timeout_seconds}s on {input_path}")
            raise ExternalToolFailure("ffmpeg", f"timed out after {self.timeout_seconds}s", {"input": str(input_path)})

        if process.returncode != 0:
            error_msg = stderr.decode(errors="replace").strip() if stderr else "Unknown FFmpeg error"
            self.logger.error(f"FFmpeg frame extraction failed: {error_msg}")
            raise ExternalToolFailure(
                "ffmpeg",
                f"exited with status {process.returncode}",
                {"input": str(input_path), "stderr": error_msg[-2000:]},
            )

    def _build_ffmpeg_command(self, input_path: Path, output_path: Path, seek_offset: str) -> List[str]:
        return [
            self.ffmpeg_binary,
            "-ss", seek_offset,      # Seek before -i so ffmpeg jumps instead of decoding up to it
            "-y",                    # Overwrite a staging file left by a crashed run
            "-i", str(input_path),
            "-frames:v", "1",
            "-q:v", str(self.quality),
            str(output_path),
        ]


class OpenCVFrameExtractor(FrameExtractor):
    """
    OpenCV-based frame extractor.

    Fails like ffmpeg does: a seek offset past the end of the recording yields
    no frame and raises ExternalToolFailure.
    """

    def __init__(self, jpeg_quality: int = 90):
        self.jpeg_quality = jpeg_quality
        self.logger = logging.getLogger(__name__)

    async def extract_frame(self, input_path: Path, output_path: Path, seek_offset: str) -> Path:
        # OpenCV blocks, run it in the default executor
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self._extract_frame_sync, input_path, output_path, parse_seek_offset(seek_offset)
        )

    def _extract_frame_sync(self, input_path: Path, output_path: Path, seek_seconds: float) -> Path:
        cap = cv2.VideoCapture(str(input_path))
        try:
            if not cap.isOpened():
                raise ExternalToolFailure("opencv", f"could not open {input_path}")

            cap.set(cv2.CAP_PROP_POS_MSEC, seek_seconds * 1000)
            ret, frame = cap.read()
            if not ret or frame is None:
                raise ExternalToolFailure("opencv", f"no frame at {seek_seconds}s in {input_path}")
        finally:
            cap.release()

        output_path.parent.mkdir(parents=True, exist_ok=True)
        staging_path = staging_path_for(output_path)
        try:
            if not cv2.imwrite(str(staging_path), frame, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality]):
                raise ExternalToolFailure("opencv", f"could not write {output_path}")
            os.replace(staging_path, output_path)
        finally:
            _discard(staging_path)

        self.logger.debug(f"Extracted frame at {seek_seconds}s from {input_path}")
        return output_path
