from cardex.models.knowledge import (
    CatalogParallel,
    CatalogSet,
    KnowledgeEntry,
    Match,
    ProtectedSpan,
)
from cardex.models.listing import (
    ExtractionContext,
    ExtractionResult,
    FieldChange,
    RawListing,
    diff_extractions,
)
from cardex.models.sport import SPORT_ORDER, CardTypeFlag, Sport

__all__ = [
    "CardTypeFlag",
    "CatalogParallel",
    "CatalogSet",
    "ExtractionContext",
    "ExtractionResult",
    "FieldChange",
    "KnowledgeEntry",
    "Match",
    "ProtectedSpan",
    "RawListing",
    "SPORT_ORDER",
    "Sport",
    "diff_extractions",
]
