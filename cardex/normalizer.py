"""
Lexical normalization of raw listing titles.

The passes run in a fixed order:
    1. unicode folding + protection of multi-word idioms
    2. grading / vendor noise removal
    3. emoji and symbol removal outside the allow-list
    4. whitespace, stray hyphen and duplicate-word collapse
    5. restoration of protected idioms
"""

import re
import unicodedata
from dataclasses import dataclass
from typing import List, Tuple

from cardex.models.knowledge import ProtectedSpan


@dataclass(frozen=True)
class NormalizedText:
    text: str
    original: str
    protected: Tuple[ProtectedSpan, ...] = ()

    def __str__(self) -> str:
        return self.text


# =============================================================================
# STAGE 1: UNICODE FOLDING & PROTECTED IDIOMS
# =============================================================================

# (canonical phrase, placeholder). Placeholders only use characters that
# survive the symbol pass.
PROTECTED_IDIOMS = (
    ("1st Edition", "1ST_EDITION"),
    ("1st Bowman", "1ST_BOWMAN"),
    ("1st Day Issue", "1ST_DAY_ISSUE"),
)

_IDIOM_PATTERNS = [
    (
        re.compile(
            r"(?<![A-Za-z0-9])"
            + r"[\s\-]*".join(re.escape(word) for word in phrase.split())
            + r"(?![A-Za-z0-9])",
            re.IGNORECASE,
        ),
        phrase,
        placeholder,
    )
    for phrase, placeholder in PROTECTED_IDIOMS
]

_QUOTE_MAP = str.maketrans(
    {
        "\u2018": "'",
        "\u2019": "'",
        "\u201b": "'",
        "\u02bc": "'",
        "`": "'",
        "\u00b4": "'",
        "\u201c": '"',
        "\u201d": '"',
        "\u2013": "-",
        "\u2014": "-",
        "\u2212": "-",
    }
)


def fold_unicode(text: str) -> str:
    """Map curly quotes/dashes to ASCII and drop accents (Dončić -> Doncic)."""
    text = text.translate(_QUOTE_MAP)
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _protect_idioms(text: str) -> str:
    for pattern, _phrase, placeholder in _IDIOM_PATTERNS:
        text = pattern.sub(f" {placeholder} ", text)
    return text


# =============================================================================
# STAGE 2: GRADING NOISE
# =============================================================================

GRADING_COMPANIES = (
    "PSA",
    "BGS",
    "SGC",
    "CGC",
    "HGA",
    "CSG",
    "BVG",
    "GMA",
    "KSA",
    "ISA",
    "TAG",
)

_GRADE_VALUE = r"(?:10|[1-9](?:\.5)?)(?![\d.])"

GRADING_NOISE_PATTERNS = [
    re.compile(
        r"\b(?:" + "|".join(GRADING_COMPANIES) + r")[\s:\-]*" + _GRADE_VALUE,
        re.IGNORECASE,
    ),
    re.compile(r"\bGEM[\s\-]*(?:MT|MINT)\b(?:[\s:\-]*" + _GRADE_VALUE + r")?", re.IGNORECASE),
    re.compile(r"\bNM[\s\-]*MT\+?(?:[\s:\-]*" + _GRADE_VALUE + r")?", re.IGNORECASE),
    re.compile(r"\bMINT[\s:\-]+" + _GRADE_VALUE, re.IGNORECASE),
    re.compile(r"\bCERT(?:IFICATION)?[\s:]*(?:#|NO\.?|NUMBER)?\s*\d+", re.IGNORECASE),
    re.compile(r"\bPOP(?:ULATION)?[\s:]*\d+\b", re.IGNORECASE),
]


def strip_grading(text: str) -> str:
    for pattern in GRADING_NOISE_PATTERNS:
        text = pattern.sub(" ", text)
    return text


# =============================================================================
# STAGE 3: SYMBOLS
# =============================================================================

# Alphanumerics, '#', '/', '.', '-', apostrophe; '_' only appears in placeholders
_DISALLOWED_CHARS = re.compile(r"[^A-Za-z0-9#/.\-'_\s]")


def strip_symbols(text: str) -> str:
    text = _DISALLOWED_CHARS.sub(" ", text)
    # Keep print runs and card numbers glued together ("25 / 99", "# 12")
    text = re.sub(r"(\d)\s+/\s+(\d)", r"\1/\2", text)
    text = re.sub(r"(?<![\w/])/\s+(\d)", r"/\1", text)
    text = re.sub(r"#\s+(?=[A-Za-z0-9])", "#", text)
    return text


# =============================================================================
# STAGE 4: COLLAPSE
# =============================================================================

_PUNCT_ONLY = re.compile(r"^[#/.\-'_]+$")


def _clean_token(token: str) -> str:
    token = token.strip("-'")
    if token.startswith("."):
        token = token.lstrip(".")
    return token


def _is_word(token: str) -> bool:
    return token.replace("'", "").isalpha()


def collapse_tokens(text: str) -> List[str]:
    tokens: List[str] = []
    for raw in text.split():
        token = _clean_token(raw)
        if not token or _PUNCT_ONLY.match(token):
            continue
        if (
            tokens
            and _is_word(token)
            and _is_word(tokens[-1])
            and token.lower() == tokens[-1].lower()
        ):
            continue
        tokens.append(token)
    return tokens


# =============================================================================
# STAGE 5: RESTORE
# =============================================================================

_PLACEHOLDERS = {placeholder: phrase for phrase, placeholder in PROTECTED_IDIOMS}


def _restore(tokens: List[str]) -> Tuple[str, Tuple[ProtectedSpan, ...]]:
    parts: List[str] = []
    spans: List[ProtectedSpan] = []
    cursor = 0
    for token in tokens:
        if parts:
            cursor += 1
        phrase = _PLACEHOLDERS.get(token)
        if phrase is not None:
            spans.append(ProtectedSpan(phrase=phrase, start=cursor, end=cursor + len(phrase)))
            token = phrase
        parts.append(token)
        cursor += len(token)
    return " ".join(parts), tuple(spans)


def normalize(title: str) -> NormalizedText:
    """Normalize a raw listing title. Pure; never raises for str input."""
    if not isinstance(title, str):
        title = "" if title is None else str(title)

    text = fold_unicode(title)
    text = _protect_idioms(text)
    text = strip_grading(text)
    text = strip_symbols(text)
    # Symbols between a grader and its grade ("PSA💎10") only fall away above
    text = strip_grading(text)
    tokens = collapse_tokens(text)
    normalized, protected = _restore(tokens)
    return NormalizedText(text=normalized, original=title, protected=protected)


def clean_title(title: str) -> str:
    """Grading/noise-stripped title text."""
    return normalize(title).text
