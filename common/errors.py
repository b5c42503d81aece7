"""
Error types for caller misuse of the store and the engines.

Rejected requests are not errors; they are reported with
`common.types.RequestResult`.
"""


class InvariantViolationError(RuntimeError):
    """A programming-contract violation. The triggering call made no change."""


class InvalidReferenceError(InvariantViolationError):
    """A city reference that is unknown or not registered."""
