"""Real-time spell-duel combat engine."""

__version__ = "0.1.0"
