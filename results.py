from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Outcome(str, Enum):
    CREATED = "created"
    OK = "ok"
    UPDATED = "updated"
    DELETED = "deleted"
    VALIDATION_FAILED = "validation_failed"
    INVALID_TYPE = "invalid_type"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"  # sender is not in the room
    FORBIDDEN = "forbidden"  # sender does not own the message
    NOT_FOUND = "not_found"
    STORE_FAILURE = "store_failure"


SUCCESS_OUTCOMES = {Outcome.CREATED, Outcome.OK, Outcome.UPDATED, Outcome.DELETED}

STATUS_CODES = {
    Outcome.CREATED: 201,
    Outcome.OK: 200,
    Outcome.UPDATED: 200,
    Outcome.DELETED: 200,
    Outcome.VALIDATION_FAILED: 422,
    Outcome.INVALID_TYPE: 422,
    Outcome.UNAUTHORIZED: 422,
    Outcome.FORBIDDEN: 401,
    Outcome.CONFLICT: 409,
    Outcome.NOT_FOUND: 404,
    Outcome.STORE_FAILURE: 500,
}

STORE_FAILURE_DETAIL = "Internal server error"


@dataclass(frozen=True)
class Result:
    outcome: Outcome
    value: Any = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome in SUCCESS_OUTCOMES

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.outcome]

    @classmethod
    def fail(cls, outcome: Outcome, detail: str) -> "Result":
        return cls(outcome=outcome, detail=detail)

    @classmethod
    def store_failure(cls) -> "Result":
        return cls(outcome=Outcome.STORE_FAILURE, detail=STORE_FAILURE_DETAIL)
