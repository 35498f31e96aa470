from __future__ import annotations


class LoadFailure(RuntimeError):
    """Raised when the persisted state is missing pieces or cannot be decoded."""


class ValidationError(ValueError):
    """Raised when an operation is rejected before touching the state.

    The message is meant to be shown to the person who triggered it.
    """


class DuplicatePhoneError(ValidationError):
    """Raised when a phone number already belongs to another student."""


class InvalidTransitionError(ValidationError):
    """Raised when a check-in step is invoked out of order."""
