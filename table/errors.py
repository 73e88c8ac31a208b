"""Exceptions raised by the table engine."""


class TableError(Exception):
    """Base class for recoverable table errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidBet(TableError):
    """Bet amount is not positive or exceeds the seat's chips."""


class IllegalAction(TableError):
    """Action is not allowed in the current phase or for the active seat."""


class EmptyShoe(TableError, IndexError):
    """Draw attempted from a shoe with no cards remaining."""


class AdvisoryUnavailable(TableError):
    """The advisory service failed, timed out, or gave unusable advice."""
