"""
Failure envelope: unified error classification.

Every user-visible failure is classified and explained. Core operations
either return their documented result or raise exactly one KnownError
subclass; nothing is silently truncated or defaulted.

Error kinds:
- ValidationError: malformed input, always recoverable
- InsufficientCardsError: a pack template cannot be satisfied from the pool
- InvalidStateError: entity is in the wrong lifecycle state
- ConflictError: duplicate entries or version contention
- NotFoundError: a referenced entity does not exist
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"

    # Resource failures
    NOT_FOUND = "not_found"
    EMPTY_RESULT = "empty_result"

    # Constraint violations
    INSUFFICIENT_CARDS = "insufficient_cards"
    INVALID_STATE = "invalid_state"
    CONFLICT = "conflict"
    PERMISSION_DENIED = "permission_denied"

    # Service failures
    EXTERNAL_API_ERROR = "external_api_error"

    # Unknown
    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    """High-level outcome classification."""

    SUCCESS = "success"
    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


T = TypeVar("T")


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class ApiResponse(BaseModel, Generic[T]):
    """
    Response envelope for failures surfaced by the API.

    Successful endpoints return their own response models; failures are
    always wrapped in this envelope by the KnownError handler.
    """

    outcome: OutcomeType = Field(
        ...,
        description="High-level classification of the result",
    )
    data: T | None = Field(
        default=None,
        description="Response data (present on success)",
    )
    failure: FailureDetail | None = Field(
        default=None,
        description="Failure details (present on non-success)",
    )

    @classmethod
    def known_failure(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "ApiResponse[Any]":
        """
        Create a known failure response.

        Use when the system knows exactly why the operation failed.
        """
        return cls(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(
                kind=kind,
                message=message,
                detail=detail,
                suggestion=suggestion,
            ),
        )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ApiResponse[Any]:
        """Convert to an ApiResponse."""
        return ApiResponse.known_failure(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class ValidationError(KnownError):
    """Malformed input: bad seat index, bad seed, bad filter expression."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=message,
            detail=detail,
            suggestion="Check the request parameters and try again.",
            status_code=400,
        )


class InsufficientCardsError(KnownError):
    """
    Exception for pack templates that cannot be satisfied.

    Raised when neither the primary nor the fallback filter of a slot has
    an eligible card left. This is a hard failure - short packs are never
    returned.
    """

    def __init__(
        self,
        slot_index: int,
        pool_size: int,
        detail: str | None = None,
    ):
        self.slot_index = slot_index
        self.pool_size = pool_size
        message = (
            f"Unable to fill slot {slot_index} of the pack. "
            f"No eligible cards remain in a pool of {pool_size} cards."
        )
        super().__init__(
            kind=FailureKind.INSUFFICIENT_CARDS,
            message=message,
            detail=detail,
            suggestion="Add more cards to the cube or loosen the pack slot filters.",
            status_code=400,
        )


class InvalidStateError(KnownError):
    """Operation attempted on an entity in the wrong lifecycle state."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_STATE,
            message=message,
            detail=detail,
            suggestion="Wait for the draft to complete and try again.",
            status_code=409,
        )


class ConflictError(KnownError):
    """
    Domain conflict or storage contention.

    Domain conflicts ("already in queue") are never retried. Transient
    conflicts are raised only after the bounded retry budget is spent.
    """

    def __init__(self, message: str, detail: str | None = None, transient: bool = False):
        self.transient = transient
        super().__init__(
            kind=FailureKind.CONFLICT,
            message=message,
            detail=detail,
            suggestion="Retry the request." if transient else None,
            status_code=409,
        )


class PermissionDeniedError(KnownError):
    """The viewer may see the entity but not change it."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.PERMISSION_DENIED,
            message=message,
            detail=detail,
            status_code=403,
        )


class NotFoundError(KnownError):
    """A referenced entity does not exist (or is not visible to the viewer)."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=message,
            detail=detail,
            status_code=404,
        )


class CardNotFoundError(NotFoundError):
    """The Card Index has no record for a card id."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(f"Card '{card_id}' not found in card index")
