"""vibesync - optimistic task board and moodboard state for shared creative projects."""

__version__ = "0.1.0"
