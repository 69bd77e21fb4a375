"""
Stream Domain Models.

Pure business entities and value objects for stream delivery.
These models contain no external dependencies and represent core business concepts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import FrozenSet, Optional

# Returned instead of a key when a user has never created a stream
NO_STREAM_KEY = ""


@dataclass(frozen=True)
class Tag:
    """Stream tag value object"""
    id: int
    name: str


@dataclass(frozen=True)
class UserRef:
    """Ranked feed candidate"""
    id: int
    name: Optional[str] = None


@dataclass
class Stream:
    """Stream entity, live until a recording path is attached"""
    id: int
    user_id: int
    stream_key: str
    title: str
    created_at: datetime
    path: Optional[str] = None
    preview: Optional[str] = None
    tags: FrozenSet[Tag] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.stream_key:
            raise ValueError("Stream key cannot be empty")

    @property
    def is_finished(self) -> bool:
        """Check if a recording has been attached"""
        return self.path is not None

    @property
    def tag_names(self) -> FrozenSet[str]:
        return frozenset(tag.name for tag in self.tags)

    def matches(self, search_query: Optional[str]) -> bool:
        """Case-insensitive match against the title or any tag name"""
        if not search_query:
            return True
        needle = search_query.lower()
        if needle in self.title.lower():
            return True
        return any(needle in name.lower() for name in self.tag_names)


@dataclass(frozen=True)
class StreamRange:
    """HTTP byte range value object, both ends inclusive"""
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0:
            raise ValueError("Start byte cannot be negative")
        if self.end < self.start:
            raise ValueError("End byte cannot be less than start byte")

    @property
    def size(self) -> int:
        """Get range size in bytes"""
        return self.end - self.start + 1

    def content_range(self, file_size: int) -> str:
        """Content-Range header value"""
        return f"bytes {self.start}-{self.end}/{file_size}"

    def next_start(self) -> int:
        """First byte of the following range"""
        return self.end + 1


@dataclass(frozen=True)
class FeedEntry:
    """Stream annotated with its resolved playback source"""
    stream: Stream
    source: str


def change_extension(path: str, extension: str) -> str:
    """Replace the extension of a media path, keeping its directory"""
    return str(PurePosixPath(path).with_suffix(f".{extension.lstrip('.')}"))


def resolve_media_path(media_root: Path, path: str) -> Path:
    """Map a media path such as /live/abc/x.mp4 onto the media root on disk"""
    return Path(media_root) / path.lstrip("/")
