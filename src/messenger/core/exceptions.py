class MessengerError(Exception):
    """Base class for errors reported to the console user."""


class NotFoundError(MessengerError):
    """Referenced login, chat or message does not exist."""


class InvalidOperationError(MessengerError):
    """The operation is not allowed in the current state or for this user."""


class InvalidInputError(MessengerError):
    """Input could not be interpreted, e.g. a non-integer choice."""


class StoreError(MessengerError):
    """The relational store failed to execute a statement."""
