"""Typed error taxonomy for lifecycle operations.

Every failure a caller must react to is a subclass of :class:`WorktrackError`.
``retryable`` tells the caller whether re-invoking (or running
reconciliation) can repair the situation; terminal errors must never be
retried as-is.
"""

from __future__ import annotations


class WorktrackError(RuntimeError):
    """Base class for lifecycle errors."""

    retryable: bool = False


class NotFound(WorktrackError):
    """A referenced document does not exist."""

    def __init__(self, kind: str, doc_id: str) -> None:
        self.kind = kind
        self.doc_id = doc_id
        super().__init__(f"{kind} not found: {doc_id}")


class Forbidden(WorktrackError):
    """The permission predicate rejected the request."""


class InvalidTransition(WorktrackError):
    """The requested edge is not in the transition table."""

    def __init__(self, from_status: str, to_status: str, message: str | None = None) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(message or f"Illegal transition: {from_status} -> {to_status}")


class InvalidRole(WorktrackError):
    """A principal's role does not allow the requested relationship."""

    def __init__(self, principal_id: str, role: str, required: str) -> None:
        self.principal_id = principal_id
        self.role = role
        self.required = required
        super().__init__(
            f"Principal {principal_id} has role '{role}' which lacks the "
            f"'{required}' capability"
        )


class ValidationError(WorktrackError):
    """Malformed input to a lifecycle operation."""


class PartialConsistencyError(WorktrackError):
    """A multi-document update stopped after at least one write succeeded.

    ``succeeded`` lists the document sides that were written, ``failed``
    names the side whose write raised. The core never retries; callers
    repair by re-invoking the operation or by running reconciliation.
    """

    retryable = True

    def __init__(
        self,
        operation: str,
        *,
        succeeded: tuple[str, ...],
        failed: str,
        cause: BaseException | None = None,
    ) -> None:
        self.operation = operation
        self.succeeded = succeeded
        self.failed = failed
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            f"{operation} partially applied; written: {', '.join(succeeded) or 'none'}; "
            f"failed: {failed}{detail}"
        )
