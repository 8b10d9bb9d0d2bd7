"""Knowledge-table records and catalog shapes."""

import re
from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class KnowledgeEntry:
    """One (pattern, label, category) triple plus optional metadata."""

    pattern: str
    label: str
    category: str
    order: int
    regex: re.Pattern = field(compare=False, repr=False)
    specificity: int = 0
    sport: Optional[str] = None
    brand: Optional[str] = None
    product: Optional[str] = None
    kind: Optional[str] = None
    year: Optional[int] = None
    print_run: Optional[str] = None

    @property
    def token_count(self) -> int:
        return len(self.pattern.split())


@dataclass(frozen=True)
class Match:
    """A knowledge entry located in a piece of text."""

    pattern: str
    label: str
    start: int
    end: int
    specificity: int
    category: str
    entry: KnowledgeEntry = field(compare=False, repr=False)
    ambiguous: bool = False

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and start < self.end


@dataclass(frozen=True)
class ProtectedSpan:
    """An idiom kept intact by the normalizer, with its final position."""

    phrase: str
    start: int
    end: int


class CatalogSet(BaseModel):
    """A sport-tagged set/product record from the catalog source."""

    set_name: str = Field(..., description="Set or product name as catalogued")
    sport: Optional[str] = Field(None, description="Sport the set belongs to")
    year: Optional[int] = Field(None, description="Release year")
    brand: Optional[str] = Field(None, description="Manufacturer brand")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "set_name": "2023 Panini Prizm Football",
                "sport": "Football",
                "year": 2023,
                "brand": "Panini",
            }
        }


class CatalogParallel(BaseModel):
    """A parallel of a catalogued set."""

    name: str = Field(..., description="Parallel name, e.g. 'Gold Prizm'")
    type: Optional[str] = Field(None, description="Parallel type, e.g. 'color'")
    rarity: Optional[str] = Field(None, description="Rarity label")
    print_run: Optional[str] = Field(None, description="Known print run, e.g. '/10'")

    class Config:
        frozen = True
