"""ProAthlete Coach: AI-generated weekly training plans that adapt to feedback."""

__version__ = "0.1.0"
