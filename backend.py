import threading
import uuid
from contextlib import contextmanager
from typing import Dict, List, Optional, Protocol, Tuple

import redis
from redis import exceptions as redis_exceptions

from constants import REDIS_DB, REDIS_HOST, REDIS_PASSWORD, REDIS_PORT, USE_IN_MEMORY_BACKEND
from logging_config import get_logger
from redis_keys import REDIS_MESSAGE_KEY, REDIS_MESSAGES_KEY, REDIS_PARTICIPANTS_KEY

logger = get_logger(__name__)

MESSAGE_FIELDS = ("from", "to", "text", "type", "time")


class StoreError(Exception):
    """Raised when the underlying store cannot complete an operation."""


class Backend(Protocol):
    """Store interface shared by the Redis and in-memory implementations."""

    def open(self) -> None:
        ...

    def close(self) -> None:
        ...

    def insert_participant(self, name: str, last_status: int) -> bool:
        ...

    def get_participant(self, name: str) -> Optional[dict]:
        ...

    def list_participants(self) -> List[dict]:
        ...

    def touch_participant(self, name: str, last_status: int) -> bool:
        ...

    def find_stale_participants(self, cutoff: int) -> List[dict]:
        ...

    def delete_stale_participants(self, cutoff: int) -> int:
        ...

    def insert_message(self, message: dict) -> dict:
        ...

    def get_message(self, message_id: str) -> Optional[dict]:
        ...

    def update_message(self, message_id: str, fields: dict) -> Optional[dict]:
        ...

    def delete_message(self, message_id: str) -> bool:
        ...

    def list_messages(self) -> List[dict]:
        ...


def _participant(name: str, score) -> dict:
    return {"name": name, "lastStatus": int(score)}


@contextmanager
def _redis_call(operation: str):
    try:
        yield
    except redis_exceptions.RedisError as e:
        logger.error(f"Redis error during {operation}: {e}", exc_info=True)
        raise StoreError(f"{operation} failed") from e


class RedisBackend:
    def __init__(self, client: Optional[redis.Redis] = None):
        self.redis_client = client or redis.Redis(
            host=REDIS_HOST, port=REDIS_PORT, password=REDIS_PASSWORD, db=REDIS_DB, decode_responses=True
        )
        logger.info(f"Initializing RedisBackend with connection to {REDIS_HOST}:{REDIS_PORT}")

    def open(self) -> None:
        with _redis_call("ping"):
            self.redis_client.ping()
        logger.info(f"Redis client connected successfully to {REDIS_HOST}:{REDIS_PORT}")

    def close(self) -> None:
        try:
            self.redis_client.close()
            logger.info("Redis client closed")
        except redis_exceptions.RedisError as e:
            logger.error(f"Error closing Redis client: {e}")

    # Participants

    def insert_participant(self, name: str, last_status: int) -> bool:
        logger.debug(f"Inserting participant {name} with lastStatus {last_status}")
        with _redis_call("insert_participant"):
            added = self.redis_client.zadd(REDIS_PARTICIPANTS_KEY, {name: last_status}, nx=True)
        return bool(added)

    def get_participant(self, name: str) -> Optional[dict]:
        with _redis_call("get_participant"):
            score = self.redis_client.zscore(REDIS_PARTICIPANTS_KEY, name)
        if score is None:
            return None
        return _participant(name, score)

    def list_participants(self) -> List[dict]:
        with _redis_call("list_participants"):
            members = self.redis_client.zrange(REDIS_PARTICIPANTS_KEY, 0, -1, withscores=True)
        logger.debug(f"Room has {len(members)} participants")
        return [_participant(name, score) for name, score in members]

    def touch_participant(self, name: str, last_status: int) -> bool:
        with _redis_call("touch_participant"):
            if self.redis_client.zscore(REDIS_PARTICIPANTS_KEY, name) is None:
                return False
            self.redis_client.zadd(REDIS_PARTICIPANTS_KEY, {name: last_status}, xx=True)
        logger.debug(f"Participant {name} refreshed to {last_status}")
        return True

    def find_stale_participants(self, cutoff: int) -> List[dict]:
        # "(" makes the bound exclusive: stale means lastStatus < cutoff
        with _redis_call("find_stale_participants"):
            members = self.redis_client.zrangebyscore(REDIS_PARTICIPANTS_KEY, "-inf", f"({cutoff}", withscores=True)
        return [_participant(name, score) for name, score in members]

    def delete_stale_participants(self, cutoff: int) -> int:
        with _redis_call("delete_stale_participants"):
            removed = self.redis_client.zremrangebyscore(REDIS_PARTICIPANTS_KEY, "-inf", f"({cutoff}")
        logger.debug(f"Removed {removed} participants with lastStatus before {cutoff}")
        return removed or 0

    # Messages

    def insert_message(self, message: dict) -> dict:
        message_id = uuid.uuid4().hex
        record = {field: message[field] for field in MESSAGE_FIELDS}
        record["id"] = message_id
        with _redis_call("insert_message"):
            pipe = self.redis_client.pipeline()
            pipe.hset(REDIS_MESSAGE_KEY.format(message_id=message_id), mapping=record)
            pipe.rpush(REDIS_MESSAGES_KEY, message_id)
            pipe.execute()
        logger.debug(f"Stored message {message_id} of type {record['type']} from {record['from']}")
        return record

    def get_message(self, message_id: str) -> Optional[dict]:
        with _redis_call("get_message"):
            data = self.redis_client.hgetall(REDIS_MESSAGE_KEY.format(message_id=message_id))
        return data or None

    def update_message(self, message_id: str, fields: dict) -> Optional[dict]:
        key = REDIS_MESSAGE_KEY.format(message_id=message_id)
        with _redis_call("update_message"):
            with self.redis_client.pipeline() as pipe:
                # WATCH aborts the write if a delete or edit lands after the existence check
                while True:
                    try:
                        pipe.watch(key)
                        if not pipe.exists(key):
                            pipe.unwatch()
                            return None
                        pipe.multi()
                        pipe.hset(key, mapping=fields)
                        pipe.hgetall(key)
                        _, updated = pipe.execute()
                        break
                    except redis_exceptions.WatchError:
                        logger.debug(f"Message {message_id} changed during update, retrying")
                        continue
        logger.debug(f"Updated message {message_id}")
        return updated

    def delete_message(self, message_id: str) -> bool:
        with _redis_call("delete_message"):
            pipe = self.redis_client.pipeline()
            pipe.delete(REDIS_MESSAGE_KEY.format(message_id=message_id))
            pipe.lrem(REDIS_MESSAGES_KEY, 0, message_id)
            deleted, _ = pipe.execute()
        logger.debug(f"Deleted message {message_id}: {deleted}")
        return bool(deleted)

    def list_messages(self) -> List[dict]:
        with _redis_call("list_messages"):
            message_ids = self.redis_client.lrange(REDIS_MESSAGES_KEY, 0, -1)
            pipe = self.redis_client.pipeline()
            for message_id in message_ids:
                pipe.hgetall(REDIS_MESSAGE_KEY.format(message_id=message_id))
            rows = pipe.execute() if message_ids else []
        # An id can outlive its hash if a delete raced with this read
        return [row for row in rows if row]


class InMemoryBackend:
    """Dict-backed store for development and tests."""

    def __init__(self):
        self._lock = threading.Lock()
        self.participants: Dict[str, int] = {}
        self.messages: Dict[str, dict] = {}

    def open(self) -> None:
        logger.info("Using in-memory chat backend")

    def close(self) -> None:
        pass

    def reset(self) -> None:
        with self._lock:
            self.participants.clear()
            self.messages.clear()

    def insert_participant(self, name: str, last_status: int) -> bool:
        with self._lock:
            if name in self.participants:
                return False
            self.participants[name] = last_status
            return True

    def get_participant(self, name: str) -> Optional[dict]:
        with self._lock:
            if name not in self.participants:
                return None
            return _participant(name, self.participants[name])

    def list_participants(self) -> List[dict]:
        with self._lock:
            return [_participant(name, score) for name, score in self.participants.items()]

    def touch_participant(self, name: str, last_status: int) -> bool:
        with self._lock:
            if name not in self.participants:
                return False
            self.participants[name] = last_status
            return True

    def _stale(self, cutoff: int) -> List[Tuple[str, int]]:
        return [(name, score) for name, score in self.participants.items() if score < cutoff]

    def find_stale_participants(self, cutoff: int) -> List[dict]:
        with self._lock:
            return [_participant(name, score) for name, score in self._stale(cutoff)]

    def delete_stale_participants(self, cutoff: int) -> int:
        with self._lock:
            stale = self._stale(cutoff)
            for name, _ in stale:
                del self.participants[name]
            return len(stale)

    def insert_message(self, message: dict) -> dict:
        record = {field: message[field] for field in MESSAGE_FIELDS}
        record["id"] = uuid.uuid4().hex
        with self._lock:
            self.messages[record["id"]] = record
        return dict(record)

    def get_message(self, message_id: str) -> Optional[dict]:
        with self._lock:
            record = self.messages.get(message_id)
            return dict(record) if record else None

    def update_message(self, message_id: str, fields: dict) -> Optional[dict]:
        with self._lock:
            record = self.messages.get(message_id)
            if record is None:
                return None
            record.update(fields)
            return dict(record)

    def delete_message(self, message_id: str) -> bool:
        with self._lock:
            return self.messages.pop(message_id, None) is not None

    def list_messages(self) -> List[dict]:
        with self._lock:
            return [dict(record) for record in self.messages.values()]


def create_backend() -> Backend:
    if USE_IN_MEMORY_BACKEND:
        return InMemoryBackend()
    return RedisBackend()
