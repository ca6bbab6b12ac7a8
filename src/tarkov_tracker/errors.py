"""Exceptions raised by the quest and progress data sources."""


class QuestDataError(Exception):
    """Base exception for the data sources."""


class QuestDataLoadError(QuestDataError):
    """Raised when an input file is missing or unreadable."""


class QuestDataValidationError(QuestDataError):
    """Raised when input content does not have the expected shape."""
