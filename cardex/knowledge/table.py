"""
Knowledge tables: category-keyed vocabularies matched against normalized text.

Matching is generic: every entry compiles to one case-insensitive regex, and
overlapping hits are resolved by specificity (alphanumeric length of the
pattern), then category rank, then declaration order.
"""

import dataclasses
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from cardex.models.knowledge import CatalogSet, KnowledgeEntry, Match
from cardex.models.sport import Sport
from cardex.normalizer import fold_unicode

BRAND = "brand"
PRODUCT = "product"
PARALLEL = "parallel"
TEAM = "team"
GRADING = "grading"
CARD_TYPE = "card_type"
SPORT_KEYWORD = "sport_keyword"
PLAYER_ALIAS = "player_alias"
DENYLIST = "denylist"

CATEGORIES = (
    BRAND,
    PRODUCT,
    PARALLEL,
    TEAM,
    GRADING,
    CARD_TYPE,
    SPORT_KEYWORD,
    PLAYER_ALIAS,
    DENYLIST,
)

# Categories tagged in the single span pass, in tie-break rank order
TAGGED_CATEGORIES = (GRADING, CARD_TYPE, PRODUCT, BRAND, PARALLEL, TEAM, SPORT_KEYWORD)

# Single-word patterns of these categories become residual denylist words
DENYLIST_SOURCES = (BRAND, PRODUCT, PARALLEL, TEAM, CARD_TYPE, GRADING, SPORT_KEYWORD)

PLAYER_KIND = "player"

_TOKEN = re.compile(r"[A-Za-z0-9]+")
_SEPARATOR = r"[\s'\-.&]*"


def compile_pattern(pattern: str) -> Tuple[Optional[re.Pattern], int]:
    """Compile a table pattern; returns (regex, specificity)."""
    tokens = _TOKEN.findall(fold_unicode(pattern))
    if not tokens:
        return None, 0
    body = _SEPARATOR.join(re.escape(token) for token in tokens)
    regex = re.compile(r"(?<![A-Za-z0-9])" + body + r"(?![A-Za-z0-9])", re.IGNORECASE)
    return regex, sum(len(token) for token in tokens)


def make_entry(
    pattern: str,
    category: str,
    order: int,
    label: Optional[str] = None,
    **metadata,
) -> Optional[KnowledgeEntry]:
    regex, specificity = compile_pattern(pattern)
    if regex is None:
        return None
    allowed = {"sport", "brand", "product", "kind", "print_run", "year"}
    return KnowledgeEntry(
        pattern=pattern,
        label=label or pattern,
        category=category,
        order=order,
        regex=regex,
        specificity=specificity,
        **{k: v for k, v in metadata.items() if k in allowed and v is not None},
    )


def resolve_overlaps(
    candidates: Iterable[Match], rank: Optional[Mapping[str, int]] = None
) -> List[Match]:
    """Keep the most specific of any overlapping matches; result ordered by start."""
    rank = rank or {}
    ordered = sorted(
        candidates,
        key=lambda m: (
            -m.specificity,
            rank.get(m.category, len(rank)),
            m.entry.order,
            m.start,
            m.end,
        ),
    )

    accepted: List[Match] = []
    for candidate in ordered:
        clash = None
        for index, kept in enumerate(accepted):
            if kept.overlaps(candidate.start, candidate.end):
                clash = index
                break
        if clash is None:
            accepted.append(candidate)
            continue

        kept = accepted[clash]
        if (
            kept.specificity == candidate.specificity
            and kept.category == candidate.category
            and kept.label != candidate.label
            and not kept.ambiguous
        ):
            # Equal rivals: declaration order already decided, remember the tie
            accepted[clash] = dataclasses.replace(kept, ambiguous=True)

    return sorted(accepted, key=lambda m: (m.start, m.end))


class KnowledgeTable:
    """Named, versioned, read-only collection of entries for one category."""

    def __init__(
        self,
        name: str,
        category: str,
        entries: Sequence[KnowledgeEntry] = (),
        version: str = "0",
    ):
        self.name = name
        self.category = category
        self.version = version
        self._entries: Tuple[KnowledgeEntry, ...] = tuple(entries)

    @classmethod
    def empty(cls, category: str) -> "KnowledgeTable":
        return cls(name=f"{category}-empty", category=category, version="empty")

    @classmethod
    def from_patterns(
        cls,
        category: str,
        patterns: Sequence,
        name: Optional[str] = None,
        version: str = "0",
    ) -> "KnowledgeTable":
        """Build a table from plain strings or (pattern, label) / dict records."""
        entries = []
        for record in patterns:
            if isinstance(record, str):
                entry = make_entry(record, category, len(entries))
            elif isinstance(record, dict):
                entry = make_entry(
                    record["pattern"],
                    category,
                    len(entries),
                    label=record.get("label"),
                    **{k: v for k, v in record.items() if k not in ("pattern", "label")},
                )
            else:
                pattern, label = record
                entry = make_entry(pattern, category, len(entries), label=label)
            if entry is not None:
                entries.append(entry)
        return cls(name=name or category, category=category, entries=entries, version=version)

    @property
    def entries(self) -> Tuple[KnowledgeEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def candidates(self, text: str) -> List[Match]:
        """Every raw hit of every entry, overlaps included."""
        found: List[Match] = []
        if not text:
            return found
        for entry in self._entries:
            for hit in entry.regex.finditer(text):
                found.append(
                    Match(
                        pattern=entry.pattern,
                        label=entry.label,
                        start=hit.start(),
                        end=hit.end(),
                        specificity=entry.specificity,
                        category=entry.category,
                        entry=entry,
                    )
                )
        return found

    def lookup(self, text: str) -> List[Match]:
        return resolve_overlaps(self.candidates(text))


@dataclass(frozen=True)
class TaggedText:
    """Result of the span-tagging pass over one normalized title."""

    text: str
    matches: Tuple[Match, ...]

    def of(self, category: str) -> List[Match]:
        return [m for m in self.matches if m.category == category]

    def consumed(self) -> List[Match]:
        """Spans the player resolver must remove (known player names excluded)."""
        return [
            m
            for m in self.matches
            if not (m.category == SPORT_KEYWORD and m.entry.kind == PLAYER_KIND)
        ]

    def players(self) -> List[Match]:
        return [
            m
            for m in self.matches
            if m.category == SPORT_KEYWORD and m.entry.kind == PLAYER_KIND
        ]


class KnowledgeBase:
    """All knowledge tables of a process, grouped by category."""

    def __init__(
        self,
        tables: Iterable[KnowledgeTable] = (),
        catalog_sets: Iterable[CatalogSet] = (),
    ):
        grouped: Dict[str, List[KnowledgeEntry]] = {}
        self._sources: List[KnowledgeTable] = []
        for table in tables:
            self._sources.append(table)
            bucket = grouped.setdefault(table.category, [])
            for entry in table:
                # Declaration order runs across every table of the category
                bucket.append(dataclasses.replace(entry, order=len(bucket)))

        self._tables: Dict[str, KnowledgeTable] = {
            category: KnowledgeTable(
                name="+".join(t.name for t in self._sources if t.category == category),
                category=category,
                entries=entries,
                version="+".join(t.version for t in self._sources if t.category == category),
            )
            for category, entries in grouped.items()
        }
        self.catalog_sets: Tuple[CatalogSet, ...] = tuple(catalog_sets)
        self.denylist = frozenset(self._build_denylist())
        self._rank = {category: i for i, category in enumerate(TAGGED_CATEGORIES)}

    def _build_denylist(self) -> Iterable[str]:
        for entry in self.table(DENYLIST):
            for token in entry.pattern.split():
                yield token.lower()
        for category in DENYLIST_SOURCES:
            for entry in self.table(category):
                if category == SPORT_KEYWORD and entry.kind == PLAYER_KIND:
                    continue
                tokens = entry.pattern.split()
                if len(tokens) == 1:
                    yield tokens[0].lower()

    def table(self, category: str) -> KnowledgeTable:
        return self._tables.get(category) or KnowledgeTable.empty(category)

    def lookup(self, category: str, text: str) -> List[Match]:
        return self.table(category).lookup(text)

    def tag(self, text: str, categories: Sequence[str] = TAGGED_CATEGORIES) -> TaggedText:
        """Single tagging pass: all categories at once, overlaps resolved globally."""
        candidates: List[Match] = []
        for category in categories:
            candidates.extend(self.table(category).candidates(text))
        return TaggedText(text=text, matches=tuple(resolve_overlaps(candidates, self._rank)))

    def is_denylisted(self, word: str) -> bool:
        return word.lower().strip(".'") in self.denylist

    def _fits_catalog(
        self,
        entry: KnowledgeEntry,
        product: Optional[str],
        year: Optional[int],
        sport: Optional[Sport],
    ) -> bool:
        """Entry's catalog set agrees with whatever product, year and sport are known."""
        if product and entry.product and product.lower() not in entry.product.lower():
            return False
        if year and entry.year and entry.year != year:
            return False
        if sport and sport is not Sport.UNKNOWN and entry.sport:
            if Sport.from_label(entry.sport) is not sport:
                return False
        return True

    def known_print_run(
        self,
        parallel: str,
        product: Optional[str],
        year: Optional[int] = None,
        sport: Optional[Sport] = None,
    ) -> Optional[str]:
        """Catalogued print run of a parallel, scoped to the product, year and sport when known."""
        for entry in self.table(PARALLEL):
            if not entry.print_run or entry.label.lower() != parallel.lower():
                continue
            if self._fits_catalog(entry, product, year, sport):
                return entry.print_run
        return None

    def is_scoped_parallel(
        self, parallel: str, product: Optional[str], year: Optional[int] = None
    ) -> bool:
        if not product:
            return False
        return any(
            entry.product and self._fits_catalog(entry, product, year, None)
            for entry in self.table(PARALLEL)
            if entry.label.lower() == parallel.lower()
        )

    def describe(self) -> List[dict]:
        return [
            {
                "category": category,
                "name": table.name,
                "version": table.version,
                "entries": len(table),
            }
            for category, table in sorted(self._tables.items())
        ] + [{"category": "catalog", "name": "catalog_sets", "version": "-", "entries": len(self.catalog_sets)}]
