"""Errors surfaced to clients as command error replies."""

from __future__ import annotations

WRONG_TYPE_MESSAGE = "WRONGTYPE Operation against a key holding the wrong kind of value"


class CommandError(Exception):
    """Base class for failures of a single command invocation."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnknownCommandError(CommandError):
    """No loaded module registered the requested command."""


class ClassificationError(CommandError):
    """The command tokens do not have the shape the classifier expects."""


class HandlerError(CommandError):
    """The command handler raised while executing."""


class KeyAccessError(CommandError):
    """A handler touched a key outside its declared key sets."""


class WrongTypeError(CommandError):
    """A typed operation was requested against a key holding another type."""

    def __init__(self, message: str = WRONG_TYPE_MESSAGE) -> None:
        super().__init__(message)


class LockTimeoutError(CommandError):
    """The declared keys could not be locked before the deadline."""


class InvocationCancelledError(CommandError):
    """The invocation was aborted from outside before it committed."""
