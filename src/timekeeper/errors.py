"""Error taxonomy shared by the engine and the CLI."""

from __future__ import annotations


class TimekeeperError(RuntimeError):
    """Base class for every error surfaced to the caller."""

    exit_code = 1


class NotFoundError(TimekeeperError):
    """Raised when a schedule reference cannot be resolved."""

    exit_code = 1


class AlreadyActiveError(TimekeeperError):
    """Raised when a work item already has a non-completed schedule."""

    exit_code = 2


class ScheduleCompletedError(TimekeeperError):
    """Raised when a completed schedule is asked to change."""

    exit_code = 3


class InvalidInputError(TimekeeperError):
    """Raised for malformed or out-of-order input."""

    exit_code = 4


class ConfigurationError(InvalidInputError):
    """Raised for invalid parameters such as a non-positive threshold."""

    exit_code = 5


class ConcurrentUpdateError(TimekeeperError):
    """Raised when the store lock cannot be acquired in time."""

    exit_code = 6


class InvariantViolationError(TimekeeperError):
    """Raised when an internal consistency check fails."""

    exit_code = 7


class UsageError(TimekeeperError):
    """Raised for a malformed command line."""

    exit_code = 64


__all__ = [
    "AlreadyActiveError",
    "ConcurrentUpdateError",
    "ConfigurationError",
    "InvalidInputError",
    "InvariantViolationError",
    "NotFoundError",
    "ScheduleCompletedError",
    "TimekeeperError",
    "UsageError",
]
