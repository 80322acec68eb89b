"""Test helpers shared across modules."""

from datetime import datetime, timedelta, timezone
from itertools import count


class FakeClock:
    """Deterministic clock; every call moves time forward by one millisecond."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(milliseconds=1)
        return self.now

    def advance(self, **delta) -> None:
        self.now += timedelta(**delta)


def sequential_codes(prefix: str = "ABCDE"):
    """Generator of codes ABCDE2, ABCDE3, ... cycling through the digits 2-9."""
    numbers = count(0)
    return lambda: f"{prefix}{next(numbers) % 8 + 2}"


async def make_room(container, facilitator="Alice", voters=("Bob", "Carol"), stories=("Story 1", "Story 2")):
    """Create a room with a facilitator, voters and queued stories; returns the code."""
    created = await container.create_room.execute()
    assert created.success, created.error
    code = created.payload["code"]
    joined = await container.join_room.execute(code, facilitator, is_facilitator=True)
    assert joined.success, joined.error
    for name in voters:
        assert (await container.join_room.execute(code, name)).success
    for title in stories:
        assert (await container.add_stories.add_one(code, title)).success
    return code
