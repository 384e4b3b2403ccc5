"""Exceptions raised by the softmax classifier and its collaborators."""


class InvalidArgumentError(ValueError):
    """An argument is outside the domain the operation accepts."""


class InvalidStateError(RuntimeError):
    """An operation was called in a lifecycle stage that does not support it."""
