"""Conversation memory: append-only session log plus a bounded prompting window.

The log in the SessionStore is the source of truth and is never truncated; the
window handed to prompts is always a suffix of it.
"""
from __future__ import annotations

import asyncio
import json
import logging
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Protocol

import redis.asyncio as redis

from .config import Settings

logger = logging.getLogger(__name__)

MEMORY_WINDOW_TURNS = 10


def new_session_id() -> str:
    """Fresh opaque conversation id."""
    return str(uuid.uuid4())


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _turn_messages(question: str, answer: str) -> list[dict]:
    timestamp = _now()
    return [
        {"role": "user", "content": question, "timestamp": timestamp},
        {"role": "assistant", "content": answer, "timestamp": timestamp},
    ]


class SessionStore(Protocol):
    """Persistent per-session message log."""

    async def append_turn(self, session_id: str, question: str, answer: str) -> None: ...

    async def load_window(self, session_id: str, n: int) -> list[dict]: ...

    async def load_full_history(self, session_id: str) -> list[dict]: ...


class RedisSessionStore:
    """SessionStore keeping each session's log in a Redis list."""

    def __init__(self, client: redis.Redis, ttl_seconds: int | None = None):
        self.redis_client = client
        self.ttl = ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisSessionStore":
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            decode_responses=True,
        )
        logger.info(f"Redis session store initialized (host={settings.redis_host})")
        return cls(client, settings.session_ttl_seconds)

    def _get_messages_key(self, session_id: str) -> str:
        """Get Redis key for a session's message log."""
        return f"chat:{session_id}:messages"

    async def append_turn(self, session_id: str, question: str, answer: str) -> None:
        """Push question and answer in one MULTI so the pair is never split."""
        key = self._get_messages_key(session_id)
        async with self.redis_client.pipeline(transaction=True) as pipe:
            pipe.rpush(key, *(json.dumps(m) for m in _turn_messages(question, answer)))
            if self.ttl:
                pipe.expire(key, self.ttl)
            await pipe.execute()

    async def load_window(self, session_id: str, n: int) -> list[dict]:
        """Last n question/answer pairs."""
        if n <= 0:
            return []
        raw = await self.redis_client.lrange(self._get_messages_key(session_id), -2 * n, -1)
        return [json.loads(item) for item in raw]

    async def load_full_history(self, session_id: str) -> list[dict]:
        raw = await self.redis_client.lrange(self._get_messages_key(session_id), 0, -1)
        return [json.loads(item) for item in raw]

    async def is_connected(self) -> bool:
        """Check if Redis is connected."""
        try:
            await self.redis_client.ping()
            return True
        except redis.RedisError:
            return False


class InMemorySessionStore:
    """Process-local SessionStore for development and tests."""

    def __init__(self):
        self._logs: dict[str, list[dict]] = defaultdict(list)

    async def append_turn(self, session_id: str, question: str, answer: str) -> None:
        self._logs[session_id].extend(_turn_messages(question, answer))

    async def load_window(self, session_id: str, n: int) -> list[dict]:
        if n <= 0:
            return []
        return [dict(m) for m in self._logs.get(session_id, [])[-2 * n:]]

    async def load_full_history(self, session_id: str) -> list[dict]:
        return [dict(m) for m in self._logs.get(session_id, [])]


class ConversationMemory:
    """
    Session memory facade used by the orchestrator.

    Appends for one session id are serialized by a per-session asyncio.Lock,
    so concurrent turns of a session land in commit order without interleaving.
    A lock lives only while some append for its session holds or awaits it.
    """

    def __init__(self, store: SessionStore, window_turns: int = MEMORY_WINDOW_TURNS):
        self.store = store
        self.window_turns = window_turns
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def _acquire_lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        return lock

    def _release_lock_for(self, session_id: str) -> None:
        self._lock_users[session_id] -= 1
        if not self._lock_users[session_id]:
            del self._lock_users[session_id]
            del self._locks[session_id]

    async def load_window(self, session_id: str) -> list[dict]:
        """Recent turns as [{role, content}] for prompting."""
        messages = await self.store.load_window(session_id, self.window_turns)
        return [{"role": m["role"], "content": m["content"]} for m in messages]

    async def append_turn(self, session_id: str, question: str, answer: str) -> None:
        lock = self._acquire_lock_for(session_id)
        try:
            async with lock:
                await self.store.append_turn(session_id, question, answer)
        finally:
            self._release_lock_for(session_id)
        logger.info("Saved turn for session %s", session_id)

    async def history(self, session_id: str) -> list[dict]:
        """Full log as [{id, role, content, timestamp}]."""
        messages = await self.store.load_full_history(session_id)
        return [
            {
                "id": f"{session_id}-{index}",
                "role": m.get("role", "assistant"),
                "content": m.get("content", ""),
                "timestamp": m.get("timestamp", ""),
            }
            for index, m in enumerate(messages)
        ]
