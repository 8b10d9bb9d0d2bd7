"""
Field extractors: year, print run, card number, grading and knowledge-backed
brand / product / parallel / card-type selection.

Every function here is pure: it reads normalized text (or tagged matches) and
returns a value without touching shared state.
"""

import dataclasses
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from cardex.knowledge.table import CARD_TYPE, KnowledgeBase, TaggedText
from cardex.models.knowledge import Match
from cardex.models.sport import CardTypeFlag
from cardex.normalizer import GRADING_COMPANIES, fold_unicode


@dataclass(frozen=True)
class Extracted:
    """A regex-extracted field value and where it sits in the text."""

    value: str
    start: int
    end: int

    def overlaps(self, start: int, end: int) -> bool:
        return self.start < end and start < self.end


Span = Tuple[int, int]

MIN_YEAR = 1900


def max_year() -> int:
    return datetime.now().year + 1


def _overlaps_any(start: int, end: int, spans: Iterable[Span]) -> bool:
    return any(s < end and start < e for s, e in spans)


# =============================================================================
# PRINT RUN
# =============================================================================

SERIAL_PATTERN = re.compile(r"(?<![\w/.#\-])(\d{1,4})/(\d{1,4})(?![\w/])")
DENOMINATOR_PATTERN = re.compile(r"(?<![\w/])#?/(\d{1,4})(?![\w/])")


def _year_like(digits: str) -> bool:
    return len(digits) == 4 and MIN_YEAR <= int(digits) <= max_year()


def extract_print_run(text: str) -> Optional[Extracted]:
    """'n/d' serials first, then bare '/d'; year-like fragments never match."""
    if not text:
        return None

    for match in SERIAL_PATTERN.finditer(text):
        numerator, denominator = match.group(1), match.group(2)
        if _year_like(numerator) or int(denominator) == 0:
            continue
        if int(numerator) > int(denominator):
            continue
        return Extracted(f"{int(numerator)}/{int(denominator)}", match.start(), match.end())

    for match in DENOMINATOR_PATTERN.finditer(text):
        denominator = match.group(1)
        if int(denominator) == 0:
            continue
        return Extracted(f"/{int(denominator)}", match.start(), match.end())

    return None


# =============================================================================
# CARD NUMBER
# =============================================================================

HASH_NUMBER_PATTERN = re.compile(r"#([A-Za-z0-9]+(?:-[A-Za-z0-9]+)*)(?![\w/])")
STANDALONE_NUMBER_PATTERN = re.compile(
    r"(?<![\w#/.\-])"
    r"([A-Z]{1,5}\d{0,3}-[A-Z0-9]{1,6}|[A-Z]{1,4}\d{1,4}[A-Z]?|\d{1,4}[A-Z]{1,3})"
    r"(?![\w/\-])"
)

GRADE_WORDS = ("GEM", "MINT", "MT", "NM")
_ORDINAL = re.compile(r"^\d+(ST|ND|RD|TH)$")


def _valid_standalone(token: str) -> bool:
    if not any(ch.isdigit() for ch in token):
        return False
    if re.fullmatch(r"(19|20)\d{2}", token):
        return False
    if _ORDINAL.match(token):
        return False
    head = re.match(r"[A-Z]+", token)
    if head and (head.group(0) in GRADING_COMPANIES or head.group(0) in GRADE_WORDS):
        return False
    return True


def extract_card_number(text: str, exclude: Sequence[Span] = ()) -> Optional[Extracted]:
    """
    Card number without its '#'.

    Explicit '#ALNUM' wins; otherwise the first upper-case alphanumeric token
    containing a digit (BDC-13, RC12, 25A) that is not a year, an ordinal, a
    grading code or inside an excluded span.
    """
    if not text:
        return None

    for match in HASH_NUMBER_PATTERN.finditer(text):
        if _overlaps_any(match.start(), match.end(), exclude):
            continue
        return Extracted(match.group(1).upper(), match.start(), match.end())

    for match in STANDALONE_NUMBER_PATTERN.finditer(text):
        token = match.group(1)
        if _overlaps_any(match.start(), match.end(), exclude):
            continue
        if _valid_standalone(token):
            return Extracted(token, match.start(), match.end())

    return None


# =============================================================================
# YEAR
# =============================================================================

YEAR_PATTERN = re.compile(r"(?<![\w#/.])(?<!\w-)((?:19|20)\d{2})(?!\d|\.\d)")


def extract_year(text: str) -> Optional[Extracted]:
    """First plausible year; season ranges like 1994-95 yield 1994."""
    if not text:
        return None

    blocked: List[Span] = []
    print_run = extract_print_run(text)
    if print_run:
        blocked.append((print_run.start, print_run.end))
    for match in HASH_NUMBER_PATTERN.finditer(text):
        blocked.append((match.start(), match.end()))

    for match in YEAR_PATTERN.finditer(text):
        year = int(match.group(1))
        if not (MIN_YEAR <= year <= max_year()):
            continue
        if _overlaps_any(match.start(), match.end(), blocked):
            continue
        return Extracted(str(year), match.start(1), match.end(1))

    return None


# =============================================================================
# GRADING
# =============================================================================

GRADE_PATTERN = re.compile(
    r"\b(" + "|".join(GRADING_COMPANIES) + r")[\s:\-]*(10|[1-9](?:\.5)?)(?![\d.])",
    re.IGNORECASE,
)


def extract_grading(raw_title: str) -> Tuple[Optional[str], Optional[str]]:
    """(grader, grade) from the raw title, e.g. ('PSA', '10')."""
    if not raw_title or not isinstance(raw_title, str):
        return None, None
    match = GRADE_PATTERN.search(fold_unicode(raw_title))
    if not match:
        return None, None
    return match.group(1).upper(), match.group(2)


# =============================================================================
# KNOWLEDGE-BACKED FIELDS
# =============================================================================


def pick_best(matches: Sequence[Match]) -> Optional[Match]:
    """Most specific match; ties by declaration order, then position."""
    if not matches:
        return None
    return min(matches, key=lambda m: (-m.specificity, m.entry.order, m.start))


def pick_brand(brands: Sequence[Match], product: Optional[Match]) -> Optional[str]:
    best = pick_best(brands)
    if best is not None:
        return best.label
    if product is not None and product.entry.brand:
        return product.entry.brand
    return None


COLOR_KIND = "color"


def _is_plain_color(match: Match) -> bool:
    return match.entry.kind == COLOR_KIND and match.entry.token_count == 1


def combine_parallels(parallels: Sequence[Match], text: str) -> List[Match]:
    """
    Join a bare color directly followed by a finish into one parallel.

    "Red Wave" and "White Sparkle" tag as two spans (a color, then a finish);
    the pair names a single parallel.
    """
    ordered = sorted(parallels, key=lambda m: m.start)
    combined: List[Match] = []
    for match in ordered:
        previous = combined[-1] if combined else None
        if (
            previous is not None
            and _is_plain_color(previous)
            and match.entry.kind != COLOR_KIND
            and not text[previous.end : match.start].strip()
        ):
            combined[-1] = dataclasses.replace(
                match,
                pattern=f"{previous.pattern} {match.pattern}",
                label=f"{previous.label} {match.label}",
                start=previous.start,
                specificity=previous.specificity + match.specificity,
                ambiguous=previous.ambiguous or match.ambiguous,
            )
            continue
        combined.append(match)
    return combined


def pick_parallel(
    parallels: Sequence[Match],
    product: Optional[Match],
    knowledge: KnowledgeBase,
    year: Optional[int] = None,
) -> Optional[Match]:
    """Best parallel, preferring ones catalogued for the chosen product and year."""
    if not parallels:
        return None
    product_label = product.label if product else None
    return min(
        parallels,
        key=lambda m: (
            not knowledge.is_scoped_parallel(m.label, product_label, year),
            -m.specificity,
            m.entry.order,
            m.start,
        ),
    )


def extract_card_type_flags(
    tagged: TaggedText,
    print_run: Optional[str] = None,
    known_print_run: Optional[str] = None,
) -> List[CardTypeFlag]:
    flags: Set[CardTypeFlag] = set()
    for match in tagged.of(CARD_TYPE):
        for label in match.label.split("+"):
            flag = CardTypeFlag.from_label(label.strip())
            if flag is not None:
                flags.add(flag)
    if print_run or known_print_run:
        flags.add(CardTypeFlag.NUMBERED)
    return [flag for flag in CardTypeFlag if flag in flags]
