"""
Stream Store Implementations.

A JSON index file holding users, streams and tags. Good enough for a single
process; a relational store can replace it behind the StreamStore interface.
"""

import asyncio
import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import aiofiles
import aiofiles.os

from ...core.timezone_utils import TimezoneManager
from ..domain.exceptions import StoreFailure
from ..domain.interfaces import StreamStore
from ..domain.models import Stream, Tag, UserRef


def _empty_index() -> Dict[str, Any]:
    return {
        "users": {},
        "streams": {},
        "tags": {},
        "next_ids": {"user": 1, "stream": 1, "tag": 1},
        "last_updated": None,
    }


def _recency(stream: Stream):
    return (stream.created_at, stream.id)


def _negate(recency):
    """Sort key turning a (datetime, id) recency into descending order"""
    created_at, stream_id = recency
    return (-created_at.timestamp(), -stream_id)


class JsonStreamStore(StreamStore):
    """JSON file implementation of the stream store"""

    def __init__(self, index_path: Path, timezone: Optional[TimezoneManager] = None):
        self.index_path = Path(index_path)
        self.timezone = timezone or TimezoneManager("UTC")
        self.logger = logging.getLogger(__name__)

        self._index: Optional[Dict[str, Any]] = None
        self._lock = asyncio.Lock()

    # Index persistence

    async def _load_index(self) -> Dict[str, Any]:
        if self._index is not None:
            return self._index

        try:
            if await aiofiles.os.path.exists(self.index_path):
                async with aiofiles.open(self.index_path, "r") as f:
                    index = json.loads(await f.read())
                self.logger.info(f"Loaded stream index from {self.index_path} ({len(index['streams'])} streams)")
                self._index = index
            else:
                self._index = _empty_index()
        except (OSError, ValueError, KeyError) as e:
            self.logger.error(f"Error loading stream index: {e}")
            raise StoreFailure(f"Could not load stream index {self.index_path}: {e}")

        return self._index

    async def _save_index(self) -> None:
        self._index["last_updated"] = self.timezone.format_timestamp()
        temp_path = self.index_path.with_name(self.index_path.name + ".tmp")

        try:
            self.index_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(temp_path, "w") as f:
                await f.write(json.dumps(self._index, indent=2))
            await aiofiles.os.replace(temp_path, self.index_path)
        except OSError as e:
            self.logger.error(f"Error saving stream index: {e}")
            raise StoreFailure(f"Could not save stream index {self.index_path}: {e}")

    def _next_id(self, kind: str) -> int:
        next_id = self._index["next_ids"][kind]
        self._index["next_ids"][kind] = next_id + 1
        return next_id

    # Record conversion

    def _to_stream(self, record: Dict[str, Any]) -> Stream:
        tags = frozenset(
            Tag(id=tag_id, name=self._index["tags"][str(tag_id)]["name"])
            for tag_id in record.get("tag_ids", [])
            if str(tag_id) in self._index["tags"]
        )
        return Stream(
            id=record["id"],
            user_id=record["user_id"],
            stream_key=record["stream_key"],
            title=record.get("title", ""),
            created_at=self.timezone.parse_timestamp(record["created_at"]),
            path=record.get("path"),
            preview=record.get("preview"),
            tags=tags,
        )

    def _all_streams(self) -> List[Stream]:
        return [self._to_stream(record) for record in self._index["streams"].values()]

    def _latest_streams(self, streams: Iterable[Stream]) -> Dict[int, Stream]:
        """Each user's most recent stream"""
        latest: Dict[int, Stream] = {}
        for stream in streams:
            current = latest.get(stream.user_id)
            if current is None or _recency(stream) > _recency(current):
                latest[stream.user_id] = stream
        return latest

    # Queries

    async def active_streams(self, search_query: Optional[str] = None) -> List[Stream]:
        async with self._lock:
            await self._load_index()
            streams = self._all_streams()

        # A user is live only while their most recent stream is unfinished; older
        # unfinished streams, even on the same key, are superseded
        live = [
            stream for stream in self._latest_streams(streams).values()
            if not stream.is_finished and stream.matches(search_query)
        ]
        return sorted(live, key=_recency, reverse=True)

    async def stream_by_id(self, stream_id: int) -> Optional[Stream]:
        async with self._lock:
            await self._load_index()
            record = self._index["streams"].get(str(stream_id))
            return self._to_stream(record) if record else None

    async def users_with_streams(self, limit: int, search_query: Optional[str] = None) -> List[UserRef]:
        """Users ranked by matching finished streams, then by their newest stream"""
        if limit <= 0:
            return []

        async with self._lock:
            await self._load_index()
            streams = [s for s in self._all_streams() if s.is_finished and s.matches(search_query)]
            users = dict(self._index["users"])

        counts = Counter(stream.user_id for stream in streams)
        newest: Dict[int, Any] = {}
        for stream in streams:
            newest[stream.user_id] = max(newest.get(stream.user_id, _recency(stream)), _recency(stream))

        ranked = sorted(counts, key=lambda user_id: (-counts[user_id], _negate(newest[user_id]), user_id))
        return [
            UserRef(id=user_id, name=users.get(str(user_id), {}).get("name"))
            for user_id in ranked[:limit]
        ]

    async def finished_streams_for_users(
        self,
        user_ids: Sequence[int],
        search_query: Optional[str] = None
    ) -> List[Stream]:
        async with self._lock:
            await self._load_index()
            streams = self._all_streams()

        order = {user_id: position for position, user_id in enumerate(user_ids)}
        finished = [
            stream for stream in streams
            if stream.is_finished and stream.user_id in order and stream.matches(search_query)
        ]
        # Most recent first within each user, users in the requested order
        finished.sort(key=_recency, reverse=True)
        finished.sort(key=lambda stream: order[stream.user_id])
        return finished

    async def finished_streams_for_user(self, user_id: int) -> List[Stream]:
        return await self.finished_streams_for_users([user_id])

    async def latest_stream_key_for_user(self, user_id: int) -> Optional[str]:
        async with self._lock:
            await self._load_index()
            streams = [s for s in self._all_streams() if s.user_id == user_id]

        latest = self._latest_streams(streams).get(user_id)
        return latest.stream_key if latest else None

    async def stream_key_in_use(self, stream_key: str) -> bool:
        async with self._lock:
            await self._load_index()
            return any(record["stream_key"] == stream_key for record in self._index["streams"].values())

    async def tags(self) -> List[Tag]:
        async with self._lock:
            await self._load_index()
            return sorted(
                (Tag(id=record["id"], name=record["name"]) for record in self._index["tags"].values()),
                key=lambda tag: tag.name.lower(),
            )

    # Mutations

    async def add_user(self, name: Optional[str] = None) -> UserRef:
        async with self._lock:
            await self._load_index()
            user_id = self._next_id("user")
            self._index["users"][str(user_id)] = {"id": user_id, "name": name}
            await self._save_index()

        return UserRef(id=user_id, name=name)

    async def create_stream(self, fields: Dict[str, Any]) -> Stream:
        missing = [name for name in ("user_id", "stream_key") if not fields.get(name)]
        if missing:
            raise ValueError(f"Missing stream fields: {missing}")

        async with self._lock:
            await self._load_index()
            stream_id = self._next_id("stream")
            created_at = fields.get("created_at") or self.timezone.now()
            record = {
                "id": stream_id,
                "user_id": int(fields["user_id"]),
                "stream_key": fields["stream_key"],
                "title": fields.get("title", ""),
                "path": fields.get("path"),
                "preview": fields.get("preview"),
                "tag_ids": [],
                "created_at": self.timezone.format_timestamp(created_at),
            }
            self._index["streams"][str(stream_id)] = record
            self._index["users"].setdefault(str(record["user_id"]), {"id": record["user_id"], "name": None})
            await self._save_index()
            stream = self._to_stream(record)

        self.logger.info(f"Created stream {stream_id} for user {stream.user_id}")
        return stream

    async def tag_stream(self, stream: Stream, tag_names: Iterable[str]) -> Stream:
        async with self._lock:
            await self._load_index()
            record = self._index["streams"].get(str(stream.id))
            if record is None:
                raise StoreFailure(f"Cannot tag unknown stream {stream.id}")

            by_name = {tag["name"].lower(): tag["id"] for tag in self._index["tags"].values()}
            for name in tag_names:
                name = name.strip()
                if not name:
                    continue
                tag_id = by_name.get(name.lower())
                if tag_id is None:
                    tag_id = self._next_id("tag")
                    self._index["tags"][str(tag_id)] = {"id": tag_id, "name": name}
                    by_name[name.lower()] = tag_id
                if tag_id not in record["tag_ids"]:
                    record["tag_ids"].append(tag_id)

            await self._save_index()
            return self._to_stream(record)

    async def attach_recording(self, stream_key: str, path: str) -> Optional[Stream]:
        """Set the recording path of the live stream publishing with stream_key"""
        async with self._lock:
            await self._load_index()
            candidates = [
                stream for stream in self._latest_streams(self._all_streams()).values()
                if stream.stream_key == stream_key and not stream.is_finished
            ]
            if not candidates:
                return None

            stream = max(candidates, key=_recency)
            self._index["streams"][str(stream.id)]["path"] = path
            await self._save_index()
            return self._to_stream(self._index["streams"][str(stream.id)])
