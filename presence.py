import time
from typing import Callable, List

from backend import Backend, StoreError
from constants import BROADCAST_TARGET, JOIN_TEXT
from logging_config import get_logger
from messages import status_message
from results import Outcome, Result
from sanitize import strip_markup

logger = get_logger(__name__)


def to_millis(timestamp: float) -> int:
    return int(timestamp * 1000)


class PresenceRegistry:
    def __init__(self, store: Backend, clock: Callable[[], float] = time.time, broadcast_target: str = BROADCAST_TARGET):
        self.store = store
        self.clock = clock
        self.broadcast_target = broadcast_target

    def join(self, name) -> Result:
        name = strip_markup(name)
        if not name:
            logger.warning("Join rejected: empty name")
            return Result.fail(Outcome.VALIDATION_FAILED, "name is required")

        now = self.clock()
        try:
            if self.store.get_participant(name) is not None:
                logger.warning(f"Join rejected: {name} is already in the room")
                return Result.fail(Outcome.CONFLICT, f"{name} is already in the room")
            inserted = self.store.insert_participant(name, to_millis(now))
        except StoreError:
            return Result.store_failure()

        if not inserted:
            # Lost a race with a concurrent join of the same name
            logger.warning(f"Join rejected: {name} was registered concurrently")
            return Result.fail(Outcome.CONFLICT, f"{name} is already in the room")

        # No multi-document transaction: the participant stays registered if the notice write fails
        try:
            self.store.insert_message(status_message(name, JOIN_TEXT, now, self.broadcast_target))
        except StoreError:
            logger.error(f"Partial join: {name} is registered but the join notice was not stored")
            return Result.store_failure()

        logger.info(f"{name} joined the room")
        return Result(Outcome.CREATED, {"name": name, "lastStatus": to_millis(now)})

    def list(self) -> Result:
        try:
            participants = self.store.list_participants()
        except StoreError:
            return Result.store_failure()
        return Result(Outcome.OK, participants)

    def heartbeat(self, name) -> Result:
        name = strip_markup(name)
        if not name:
            return Result.fail(Outcome.NOT_FOUND, "Participant not found")
        try:
            refreshed = self.store.touch_participant(name, to_millis(self.clock()))
        except StoreError:
            return Result.store_failure()
        if not refreshed:
            logger.debug(f"Heartbeat from {name} ignored: not in the room")
            return Result.fail(Outcome.NOT_FOUND, "Participant not found")
        return Result(Outcome.OK)

    def is_active(self, name: str) -> bool:
        return self.store.get_participant(name) is not None

    def stale(self, cutoff: int) -> List[dict]:
        """Participants whose lastStatus is strictly before ``cutoff`` (ms)."""
        return self.store.find_stale_participants(cutoff)

    def evict_stale(self, cutoff: int) -> int:
        return self.store.delete_stale_participants(cutoff)
