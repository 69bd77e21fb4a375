"""
Stream Infrastructure Layer.

Contains implementations of domain interfaces using external dependencies
like the file system, FFmpeg and OpenCV.
"""

from .repositories import JsonStreamStore
from .transcoders import FFmpegFrameExtractor, OpenCVFrameExtractor
from .locking import KeyedLock

__all__ = [
    "JsonStreamStore",
    "FFmpegFrameExtractor",
    "OpenCVFrameExtractor",
    "KeyedLock",
]
