"""DevInsight - heuristic code, crash and commit-history insight engine."""

__version__ = "0.1.0"
