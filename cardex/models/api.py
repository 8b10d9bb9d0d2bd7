"""
Pydantic models for API request/response validation and documentation.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from cardex.models.listing import ExtractionContext, ExtractionResult, FieldChange


# Request Models
class ExtractRequest(BaseModel):
    """Request model for extracting one listing title."""

    title: str = Field(..., description="Raw marketplace listing title")
    context: Optional[ExtractionContext] = Field(
        None, description="Optional hints (known player name, prior extraction)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "title": "2021 Panini Prizm- Ja'marr Chase- Rookie Pink Prizm- PSA 10",
                "context": {"knownPlayerNameHint": "Ja'Marr Chase"},
            }
        }


class BatchExtractRequest(BaseModel):
    """Request model for extracting many listing titles at once."""

    titles: List[str] = Field(..., description="Raw listing titles", max_length=1000)

    class Config:
        json_schema_extra = {
            "example": {
                "titles": [
                    "2023 Panini Prizm Anthony Edwards Silver Prizm #12",
                    "2021 Topps Chrome UEFA Women's Champions League Tobin Heath /25",
                ]
            }
        }


class ReprocessRequest(BaseModel):
    """Request model for re-extracting a stored listing."""

    title: str = Field(..., description="Raw listing title")
    prior_extraction: Optional[ExtractionResult] = Field(
        None, alias="priorExtraction", description="Stored extraction to diff against"
    )

    class Config:
        populate_by_name = True


# Response Models
class ReprocessResponse(BaseModel):
    """Fresh extraction plus its diff against the stored one."""

    result: ExtractionResult = Field(..., description="Fresh extraction")
    changes: List[FieldChange] = Field(default_factory=list, description="Changed fields")
    improved: bool = Field(False, description="Whether the fresh extraction is better")


class KnowledgeTableInfo(BaseModel):
    """Summary of one loaded knowledge table."""

    category: str = Field(..., description="Knowledge category")
    name: str = Field(..., description="Table name(s)")
    version: str = Field(..., description="Table version(s)")
    entries: int = Field(..., description="Number of entries")


class KnowledgeResponse(BaseModel):
    tables: List[KnowledgeTableInfo] = Field(default_factory=list)
    denylist_size: int = Field(0, description="Words never accepted as player names")
