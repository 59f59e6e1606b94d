"""SpawnGuard: keyword-based entity admission filter for a live simulation host."""

__version__ = "1.1.2"
