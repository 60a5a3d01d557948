"""Library manager: a book catalogue persisted to a JSON file."""

__version__ = "1.0.0"
