"""
Pydantic models for listing input, extraction output and re-extraction diffs.
"""

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from cardex.models.sport import CARD_TYPE_ORDER, CardTypeFlag, Sport


class RawListing(BaseModel):
    """Immutable marketplace listing as collected."""

    title: str = Field(..., description="Listing title exactly as scraped")
    source_id: Optional[str] = Field(
        None, alias="sourceId", description="Identifier in the source marketplace"
    )
    collected_at: Optional[datetime] = Field(
        None, alias="collectedAt", description="When the listing was collected"
    )

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "title": "2021 Panini Prizm- Ja'marr Chase- Rookie Pink Prizm- PSA 10",
                "sourceId": "ebay:1234567890",
                "collectedAt": "2024-05-01T12:00:00Z",
            }
        }


class ExtractionResult(BaseModel):
    """Structured record derived from one listing title."""

    sport: Sport = Field(Sport.UNKNOWN, description="Detected sport or card game")
    year: Optional[int] = Field(None, description="Release year")
    brand: Optional[str] = Field(None, description="Manufacturer brand")
    product: Optional[str] = Field(None, description="Product line / set")
    parallel: Optional[str] = Field(None, description="Parallel or colorway")
    print_run: Optional[str] = Field(
        None, alias="printRun", description="Print run as 'n/d' or '/d'"
    )
    card_number: Optional[str] = Field(
        None, alias="cardNumber", description="Card number without '#'"
    )
    player_name: Optional[str] = Field(
        None, alias="playerName", description="Resolved player or subject name"
    )
    card_type_flags: List[CardTypeFlag] = Field(
        default_factory=list, alias="cardTypeFlags", description="Card type flags"
    )
    grader: Optional[str] = Field(None, description="Grading company, e.g. PSA")
    grade: Optional[str] = Field(None, description="Grade as printed, e.g. 9.5")
    summary_title: str = Field("", alias="summaryTitle", description="Canonical title")
    confidence: float = Field(0.0, ge=0.0, le=1.0, description="Extraction confidence")

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "sport": "Soccer",
                "year": 2021,
                "brand": "Topps",
                "product": "Chrome UEFA Women's Champions League",
                "parallel": None,
                "printRun": "/25",
                "cardNumber": None,
                "playerName": "Tobin Heath",
                "cardTypeFlags": ["numbered"],
                "grader": "PSA",
                "grade": "10",
                "summaryTitle": "2021 Chrome UEFA Women's Champions League Tobin Heath /25",
                "confidence": 0.71,
            }
        }

    @field_validator("card_type_flags")
    @classmethod
    def _canonical_flags(cls, flags: List[CardTypeFlag]) -> List[CardTypeFlag]:
        # Set semantics with a stable serialised order
        present = set(flags)
        return [flag for flag in CARD_TYPE_ORDER if flag in present]

    @classmethod
    def empty(cls) -> "ExtractionResult":
        return cls(sport=Sport.UNKNOWN, summary_title="", confidence=0.0)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class ExtractionContext(BaseModel):
    """Optional hints supplied by maintenance and reprocessing callers."""

    known_player_name_hint: Optional[str] = Field(
        None, alias="knownPlayerNameHint", description="Player name known upstream"
    )
    prior_extraction: Optional[ExtractionResult] = Field(
        None, alias="priorExtraction", description="Previously stored extraction"
    )

    class Config:
        populate_by_name = True


# Fields compared when diffing a re-extraction against the stored record
DIFF_FIELDS = (
    "sport",
    "year",
    "brand",
    "product",
    "parallel",
    "print_run",
    "card_number",
    "player_name",
    "card_type_flags",
    "grader",
    "grade",
    "summary_title",
)


class FieldChange(BaseModel):
    """One field that differs between a stored and a fresh extraction."""

    field: str = Field(..., description="Field name (JSON alias)")
    old: Optional[Any] = Field(None, description="Stored value")
    new: Optional[Any] = Field(None, description="Freshly extracted value")
    kind: Literal["added", "changed", "removed"] = Field(..., description="Change type")


def _is_empty(value) -> bool:
    return value is None or value == [] or value == "" or value == Sport.UNKNOWN


def diff_extractions(
    old: Optional[ExtractionResult], new: ExtractionResult
) -> List[FieldChange]:
    """Field-level diff of two extractions; empty list when nothing changed."""
    if old is None:
        old = ExtractionResult.empty()

    changes: List[FieldChange] = []
    for name in DIFF_FIELDS:
        before = getattr(old, name)
        after = getattr(new, name)
        if before == after:
            continue

        alias = ExtractionResult.model_fields[name].alias or name
        if _is_empty(before):
            kind = "added"
        elif _is_empty(after):
            kind = "removed"
        else:
            kind = "changed"

        changes.append(
            FieldChange(
                field=alias,
                old=_plain(before),
                new=_plain(after),
                kind=kind,
            )
        )
    return changes


def _plain(value):
    if isinstance(value, Sport) or isinstance(value, CardTypeFlag):
        return value.value
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value
