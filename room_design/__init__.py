"""Room design game backend: design editing, submissions, voting and theme rotation."""

__version__ = "0.1.0"
