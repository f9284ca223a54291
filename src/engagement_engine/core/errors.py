"""Exception taxonomy for the engagement engine.

Caller errors are never retried internally; transient errors are safe to
retry because every write path is idempotent; invariant violations halt the
operation that found them.
"""

from __future__ import annotations


class EngineError(RuntimeError):
    """Base class for all engine failures."""


class CallerError(EngineError):
    """The request itself is invalid and must not be retried as-is."""


class UnknownContentError(CallerError):
    """Raised when a content id is not registered with the engine."""

    def __init__(self, content_id: str) -> None:
        super().__init__(f"Unknown content: {content_id}")
        self.content_id = content_id


class UnknownUserError(CallerError):
    """Raised when a user id is not known to the identity mirror."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"Unknown user: {user_id}")
        self.user_id = user_id


class InvalidKindError(CallerError):
    """Raised when an engagement event carries an unsupported kind."""

    def __init__(self, kind: object) -> None:
        super().__init__(f"Invalid engagement kind: {kind!r}")
        self.kind = kind


class IllegalTransitionError(CallerError):
    """Raised when a moderation transition is not in the transition table."""

    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(f"Illegal transition {from_status} -> {to_status}")
        self.from_status = from_status
        self.to_status = to_status


class InsufficientPrivilegeError(CallerError):
    """Raised when the actor's role may not perform a legal transition."""

    def __init__(self, from_status: str, to_status: str, role: str) -> None:
        super().__init__(f"Role {role} may not transition {from_status} -> {to_status}")
        self.from_status = from_status
        self.to_status = to_status
        self.role = role


class InvalidPeriodError(CallerError):
    """Raised when a payout period id cannot be parsed."""

    def __init__(self, period_id: str) -> None:
        super().__init__(f"Invalid payout period: {period_id!r}")
        self.period_id = period_id


class UnknownBatchError(CallerError):
    """Raised when a payout batch does not exist."""

    def __init__(self, batch_id: int) -> None:
        super().__init__(f"Unknown payout batch: {batch_id}")
        self.batch_id = batch_id


class TransientError(EngineError):
    """A retryable infrastructure failure."""


class StoreUnavailableError(TransientError):
    """Raised when the durable store rejects a write."""


class PayoutConflictError(TransientError):
    """Raised when a conditional payout assignment lost a race."""


class ExportDeliveryError(TransientError):
    """Raised when the export sink did not accept a payout CSV."""


class BatchCancelledError(EngineError):
    """Raised when a payout run is cancelled before its commit."""


class InvariantViolationError(EngineError):
    """Raised when stored state contradicts an engine invariant."""


class UnknownSignalTypeError(CallerError):
    """Raised when a fraud signal has no weight and no configured default."""

    def __init__(self, signal_type: str) -> None:
        super().__init__(f"Unknown fraud signal type: {signal_type!r}")
        self.signal_type = signal_type


class BatchNotClosedError(CallerError):
    """Raised when exporting a batch that has not been committed."""

    def __init__(self, batch_id: int) -> None:
        super().__init__(f"Payout batch {batch_id} is not closed")
        self.batch_id = batch_id
