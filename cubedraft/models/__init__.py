from cubedraft.models.analytics import CardRating, CubeAnalytics
from cubedraft.models.card import CardMetadata, CubeCard, CubeOverride, merge_card
from cubedraft.models.cube import (
    Cube,
    CubeCardEntry,
    DraftFormat,
    PackTemplate,
    SlotRule,
    is_cube_viewable,
)
from cubedraft.models.draft import (
    BotDescriptor,
    BotKind,
    DraftCard,
    DraftSession,
    DraftStatus,
    PackRecord,
    Seat,
    Viewer,
)
from cubedraft.models.failure import (
    ApiResponse,
    CardNotFoundError,
    ConflictError,
    FailureDetail,
    FailureKind,
    InsufficientCardsError,
    InvalidStateError,
    KnownError,
    NotFoundError,
    OutcomeType,
    PermissionDeniedError,
    ValidationError,
)
from cubedraft.models.featured import FeaturedEntry, FeaturedQueue

__all__ = [
    "ApiResponse",
    "BotDescriptor",
    "BotKind",
    "CardMetadata",
    "CardNotFoundError",
    "CardRating",
    "ConflictError",
    "Cube",
    "CubeAnalytics",
    "CubeCard",
    "CubeCardEntry",
    "CubeOverride",
    "DraftCard",
    "DraftFormat",
    "DraftSession",
    "DraftStatus",
    "FailureDetail",
    "FailureKind",
    "FeaturedEntry",
    "FeaturedQueue",
    "InsufficientCardsError",
    "InvalidStateError",
    "KnownError",
    "NotFoundError",
    "OutcomeType",
    "PackRecord",
    "PackTemplate",
    "PermissionDeniedError",
    "Seat",
    "SlotRule",
    "ValidationError",
    "Viewer",
    "is_cube_viewable",
    "merge_card",
]
