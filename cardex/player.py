"""
Player-name resolution from what is left of a title once every known span
(brand, product, parallel, team, card type, grading, year, print run, card
number) has been cut out.
"""

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from cardex.knowledge.table import PLAYER_ALIAS, KnowledgeBase, TaggedText, compile_pattern
from cardex.utils.logger import player_logger

MIN_NAME_LEN = 3
MAX_NAME_LEN = 30
MIN_WORDS = 2
MAX_WORDS = 3

SUFFIXES = ("Jr", "Sr", "II", "III", "IV")
_ROMAN = {"II", "III", "IV"}
_VOWELS = set("AEIOUY")

_WORD = re.compile(r"^[A-Za-z][A-Za-z'.\-]*[A-Za-z.]$")

Span = Tuple[int, int]


# =============================================================================
# CASING
# =============================================================================


def _is_suffix(word: str) -> bool:
    return word.strip(".").lower() in {s.lower() for s in SUFFIXES}


def _is_initials(letters: str) -> bool:
    # TJ, CJ, AJ, DJ... but not Bo or Ed
    return len(letters) == 2 and (letters.upper().endswith("J") or not (set(letters.upper()) & _VOWELS))


def _title_part(part: str) -> str:
    if not part:
        return part
    if len(part) == 1:
        return part.upper()
    return part[0].upper() + part[1:].lower()


def case_word(word: str) -> str:
    letters = "".join(ch for ch in word if ch.isalpha())
    if not letters:
        return word
    if _is_suffix(word):
        return word.upper() if letters.upper() in _ROMAN else _title_part(word)
    if not (letters.islower() or letters.isupper()):
        return word
    if _is_initials(letters) and letters == word.strip("."):
        return word.upper()
    # Title-case every apostrophe / hyphen part: o'hearn -> O'Hearn
    return "".join(
        _title_part(piece) if piece not in ("'", "-") else piece
        for piece in re.split(r"(['\-])", word)
    )


def case_name(name: str) -> str:
    return " ".join(case_word(word) for word in name.split())


# =============================================================================
# ALIASES
# =============================================================================


def _alias_tokens(segment: str, knowledge: KnowledgeBase) -> List[Tuple[str, bool]]:
    """Split a segment into (token, is_alias) pairs; an alias is one token."""
    tokens: List[Tuple[str, bool]] = []
    cursor = 0
    for match in knowledge.lookup(PLAYER_ALIAS, segment):
        tokens.extend((word, False) for word in segment[cursor:match.start].split())
        tokens.append((match.label, True))
        cursor = match.end
    tokens.extend((word, False) for word in segment[cursor:].split())
    return tokens


def normalize_player_name(name: Optional[str], knowledge: KnowledgeBase) -> Optional[str]:
    """Alias correction plus casing for a free-form player name."""
    if not name or not name.strip():
        return None
    words = [token if is_alias else case_word(token) for token, is_alias in _alias_tokens(name.strip(), knowledge)]
    return " ".join(words) or None


# =============================================================================
# RESOLVER
# =============================================================================


def _segments(text: str, spans: Iterable[Span]) -> List[str]:
    segments = []
    cursor = 0
    for start, end in sorted(spans):
        if start > cursor:
            segments.append(text[cursor:start])
        cursor = max(cursor, end)
    segments.append(text[cursor:])
    return [s for s in segments if s.strip()]


class PlayerNameResolver:
    def __init__(self, knowledge: KnowledgeBase):
        self.knowledge = knowledge

    def _runs(self, segment: str) -> List[List[str]]:
        """Candidate word runs, split at denylisted and digit-bearing tokens."""
        runs: List[List[str]] = []
        current: List[str] = []

        def close():
            if current:
                runs.append(list(current))
                current.clear()

        for token, is_alias in _alias_tokens(segment, self.knowledge):
            if is_alias:
                current.append(token)
                continue
            word = token.strip("-'")
            if any(ch.isdigit() for ch in word) or "#" in word or "/" in word:
                close()
                continue
            if sum(ch.isalpha() for ch in word) < 2 or not _WORD.match(word):
                # Single letters and stray fragments are dropped in place
                continue
            if self.knowledge.is_denylisted(word):
                close()
                continue
            current.append(word)
        close()
        return runs

    @staticmethod
    def _pick_words(run: Sequence[str]) -> Optional[List[str]]:
        if len(run) < MIN_WORDS or _is_suffix(run[0]):
            return None
        if len(run) <= MAX_WORDS:
            return list(run)
        words = list(run[:MIN_WORDS])
        if _is_suffix(run[MIN_WORDS]):
            words.append(run[MIN_WORDS])
        return words

    def _candidates(self, segments: Sequence[str]) -> List[str]:
        names: List[str] = []
        for segment in segments:
            for run in self._runs(segment):
                words = self._pick_words(run)
                if words is None:
                    continue
                name = case_name(" ".join(words))
                if MIN_NAME_LEN <= len(name) <= MAX_NAME_LEN and name not in names:
                    names.append(name)
        return names

    def _accept_hint(self, hint: Optional[str], text: str, spans: Sequence[Span]) -> Optional[str]:
        """A caller hint passes the same guards as a window found in the title."""
        if not hint or not hint.strip():
            return None
        name = normalize_player_name(hint, self.knowledge)
        if not name or not MIN_NAME_LEN <= len(name) <= MAX_NAME_LEN:
            return None
        if any(self.knowledge.is_denylisted(word) for word in name.split()):
            player_logger.debug(f"🙅 Hint {hint!r} contains knowledge vocabulary")
            return None

        regex, _ = compile_pattern(hint)
        if regex is None:
            return None
        for hit in regex.finditer(text):
            if not any(start < hit.end() and hit.start() < end for start, end in spans):
                return name
        return None

    def resolve(
        self,
        tagged: TaggedText,
        consumed_spans: Sequence[Span] = (),
        hint: Optional[str] = None,
    ) -> Tuple[Optional[str], bool]:
        """
        Resolve the player name of a tagged title.

        Args:
            tagged: Span-tagging result for the normalized title
            consumed_spans: Extra spans to cut (year, print run, card number)
            hint: Caller-supplied player name, used when found in the title
                outside every tagged span and free of knowledge vocabulary

        Returns:
            (name or None, ambiguous)
        """
        known = tagged.players()
        if known:
            first = known[0]
            return first.label, first.ambiguous or len({m.label for m in known}) > 1

        spans = [(m.start, m.end) for m in tagged.consumed()] + list(consumed_spans)

        accepted = self._accept_hint(hint, tagged.text, spans)
        if accepted:
            return accepted, False

        candidates = self._candidates(_segments(tagged.text, spans))
        if not candidates:
            player_logger.debug(f"🙅 No player name in {tagged.text!r}")
            return None, False

        player_logger.debug(f"👤 Player {candidates[0]!r} from {tagged.text!r}")
        return candidates[0], len(candidates) > 1
