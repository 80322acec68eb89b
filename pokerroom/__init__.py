"""Planning Poker rooms: voting state machine, synchronization and history."""

__version__ = "1.0.0"
