"""Fake implementations for testing the note store."""


class FakeClock:
    """Deterministic millisecond clock.

    Every call returns a strictly larger timestamp, so ordering by
    ``updated_at`` is unambiguous in tests.
    """

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1) -> None:
        self.now = start
        self.step = step
        self.calls = 0

    def __call__(self) -> int:
        self.now += self.step
        self.calls += 1
        return self.now
