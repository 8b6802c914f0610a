import re
import time
from datetime import datetime
from typing import Callable, Optional

from backend import Backend, StoreError
from constants import BROADCAST_TARGET, TIME_FORMAT
from logging_config import get_logger
from results import Outcome, Result
from sanitize import strip_markup

logger = get_logger(__name__)

MESSAGE_TYPE = "message"
PRIVATE_MESSAGE_TYPE = "private_message"
STATUS_TYPE = "status"

# Types a client may author; status messages are server-generated only
CLIENT_TYPES = {MESSAGE_TYPE, PRIVATE_MESSAGE_TYPE}
PUBLIC_TYPES = {MESSAGE_TYPE, STATUS_TYPE}

LIMIT_PATTERN = re.compile(r"[0-9]+")


def format_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime(TIME_FORMAT)


def status_message(name: str, text: str, timestamp: float, to: str = BROADCAST_TARGET) -> dict:
    """Build a system notice (join/leave) attributed to ``name``."""
    return {"from": name, "to": to, "text": text, "type": STATUS_TYPE, "time": format_time(timestamp)}


def is_visible(message: dict, viewer: str) -> bool:
    return (
        message.get("to") == viewer
        or message.get("from") == viewer
        or message.get("type") in PUBLIC_TYPES
    )


def parse_limit(limit) -> Optional[int]:
    """Return ``limit`` as a positive int, or None when it is not one."""
    if isinstance(limit, bool):
        return None
    if isinstance(limit, int):
        return limit if limit > 0 else None
    if not isinstance(limit, str) or not LIMIT_PATTERN.fullmatch(limit.strip()):
        return None
    value = int(limit.strip())
    return value if value > 0 else None


class MessageAuthority:
    def __init__(self, store: Backend, presence, clock: Callable[[], float] = time.time):
        self.store = store
        self.presence = presence
        self.clock = clock

    def _check_author(self, sender: Optional[str], to, text, message_type) -> tuple:
        """
        Validate an authored message in a fixed order: sender present, sender
        in the room, type allowed, fields non-empty.

        Returns ``(failure, fields)``; exactly one of them is None.
        """
        if not sender:
            return Result.fail(Outcome.VALIDATION_FAILED, "User header is required"), None

        try:
            active = self.presence.is_active(sender)
        except StoreError:
            return Result.store_failure(), None
        if not active:
            logger.warning(f"Rejected message from {sender}: not in the room")
            return Result.fail(Outcome.UNAUTHORIZED, f"{sender} is not in the room"), None

        message_type = strip_markup(message_type)
        if message_type not in CLIENT_TYPES:
            logger.warning(f"Rejected message from {sender}: invalid type {message_type!r}")
            return Result.fail(Outcome.INVALID_TYPE, "type must be message or private_message"), None

        to = strip_markup(to)
        text = strip_markup(text)
        missing = [field for field, value in (("to", to), ("text", text)) if not value]
        if missing:
            return Result.fail(Outcome.VALIDATION_FAILED, f"Missing required fields: {', '.join(missing)}"), None

        return None, {"to": to, "text": text, "type": message_type, "time": format_time(self.clock())}

    def _find_owned(self, message_id: str, sender: str) -> tuple:
        try:
            message = self.store.get_message(message_id)
        except StoreError:
            return Result.store_failure(), None
        if message is None:
            return Result.fail(Outcome.NOT_FOUND, "Message not found"), None
        if message.get("from") != sender:
            logger.warning(f"{sender} attempted to modify message {message_id} owned by {message.get('from')}")
            return Result.fail(Outcome.FORBIDDEN, "Only the sender can modify this message"), None
        return None, message

    def post_message(self, sender, to, text, message_type) -> Result:
        sender = strip_markup(sender)
        failure, fields = self._check_author(sender, to, text, message_type)
        if failure:
            return failure

        try:
            message = self.store.insert_message({"from": sender, **fields})
        except StoreError:
            return Result.store_failure()
        logger.info(f"Message {message['id']} posted by {sender} to {message['to']} ({message['type']})")
        return Result(Outcome.CREATED, message)

    def edit_message(self, message_id: str, sender, to, text, message_type) -> Result:
        sender = strip_markup(sender)
        failure, fields = self._check_author(sender, to, text, message_type)
        if failure:
            return failure

        failure, _ = self._find_owned(message_id, sender)
        if failure:
            return failure

        try:
            updated = self.store.update_message(message_id, fields)
        except StoreError:
            return Result.store_failure()
        if updated is None:
            # Deleted between the ownership check and the write
            return Result.fail(Outcome.NOT_FOUND, "Message not found")
        logger.info(f"Message {message_id} edited by {sender}")
        return Result(Outcome.UPDATED, updated)

    def delete_message(self, message_id: str, sender) -> Result:
        sender = strip_markup(sender)
        if not sender:
            return Result.fail(Outcome.VALIDATION_FAILED, "User header is required")

        failure, _ = self._find_owned(message_id, sender)
        if failure:
            return failure

        try:
            self.store.delete_message(message_id)
        except StoreError:
            return Result.store_failure()
        logger.info(f"Message {message_id} deleted by {sender}")
        return Result(Outcome.DELETED)

    def list_messages(self, viewer, limit=None) -> Result:
        viewer = strip_markup(viewer)
        if not viewer:
            return Result.fail(Outcome.VALIDATION_FAILED, "User header is required")

        count = None
        if limit is not None:
            count = parse_limit(limit)
            if count is None:
                return Result.fail(Outcome.VALIDATION_FAILED, "limit must be a positive integer")

        try:
            messages = self.store.list_messages()
        except StoreError:
            return Result.store_failure()

        visible = [message for message in messages if is_visible(message, viewer)]
        if count is not None:
            visible = visible[-count:]
        logger.debug(f"Returning {len(visible)} of {len(messages)} messages to {viewer}")
        return Result(Outcome.OK, visible)
