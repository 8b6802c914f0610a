from backend import InMemoryBackend, StoreError

START = 1_700_000_000.0


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = START):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingMessagesBackend(InMemoryBackend):
    """In-memory store whose message inserts fail for selected senders (all when empty)."""

    def __init__(self, senders=()):
        super().__init__()
        self.senders = set(senders)

    def insert_message(self, message: dict) -> dict:
        if not self.senders or message["from"] in self.senders:
            raise StoreError("insert_message failed")
        return super().insert_message(message)
