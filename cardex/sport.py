"""
Sport classification as an ordered cascade of strategies.

    1. catalog lookup      fuzzy match against sport-tagged catalog sets
    2. player lookup       optional external player -> sport directory
    3. keyword cascade     tagged team / sport keyword spans, fixed sport order
    4. fallback            Unknown

A strategy that raises is logged and treated as "no match"; classification
always terminates with a value.
"""

import re
from collections import Counter
from typing import Callable, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz

from cardex.knowledge.table import SPORT_KEYWORD, TEAM, KnowledgeBase, TaggedText
from cardex.models.knowledge import CatalogSet
from cardex.models.sport import SPORT_ORDER, Sport
from cardex.normalizer import normalize
from cardex.player_directory import PlayerDirectory
from cardex.utils.logger import sport_logger

CATALOG_MATCH_THRESHOLD = 90

_YEAR_PREFIX = re.compile(r"^\s*(?:19|20)\d{2}(?:[-/]\d{2,4})?\s+")


def catalog_key(set_name: str) -> str:
    """Lower-cased, normalized set name without its leading year."""
    return _YEAR_PREFIX.sub("", normalize(set_name).text).lower().strip()


def _sport_rank(sport: Sport) -> int:
    return SPORT_ORDER.index(sport) if sport in SPORT_ORDER else len(SPORT_ORDER)


def _most_frequent(sports: Sequence[Sport]) -> Optional[Sport]:
    if not sports:
        return None
    counts = Counter(sports)
    return min(counts, key=lambda s: (-counts[s], _sport_rank(s)))


# =============================================================================
# STRATEGIES
# =============================================================================


def match_catalog(
    text: str,
    catalog_sets: Sequence[CatalogSet],
    threshold: int = CATALOG_MATCH_THRESHOLD,
) -> Optional[Sport]:
    """Sport with the most catalog sets fuzzily contained in the title."""
    haystack = text.lower()
    if not haystack or not catalog_sets:
        return None

    hits: List[Sport] = []
    for catalog_set in catalog_sets:
        sport = Sport.from_optional(catalog_set.sport)
        if sport is None:
            continue
        key = catalog_key(catalog_set.set_name)
        # A set name longer than the title would "contain" any short title
        if not key or len(key) > len(haystack):
            continue
        if fuzz.partial_ratio(key, haystack) >= threshold:
            hits.append(sport)

    return _most_frequent(hits)


def match_keywords(tagged: TaggedText) -> Optional[Sport]:
    """First sport, in SPORT_ORDER, owning any tagged team or sport keyword."""
    found = set()
    for match in tagged.matches:
        if match.category not in (TEAM, SPORT_KEYWORD):
            continue
        sport = Sport.from_optional(match.entry.sport)
        if sport is not None:
            found.add(sport)

    for sport in SPORT_ORDER:
        if sport in found:
            return sport
    return None


# =============================================================================
# CLASSIFIER
# =============================================================================


class SportClassifier:
    def __init__(
        self,
        knowledge: KnowledgeBase,
        player_directory: Optional[PlayerDirectory] = None,
        catalog_threshold: int = CATALOG_MATCH_THRESHOLD,
    ):
        self.knowledge = knowledge
        self.player_directory = player_directory
        self.catalog_threshold = catalog_threshold

    def _strategies(
        self, tagged: TaggedText, player_name: Optional[str]
    ) -> List[Tuple[str, Callable[[], Optional[Sport]]]]:
        strategies = [
            (
                "catalog",
                lambda: match_catalog(tagged.text, self.knowledge.catalog_sets, self.catalog_threshold),
            )
        ]
        if self.player_directory is not None and player_name:
            strategies.append(
                (
                    "player_lookup",
                    lambda: Sport.from_optional(
                        self.player_directory.resolve_sport_for_player(player_name)
                    ),
                )
            )
        strategies.append(("keywords", lambda: match_keywords(tagged)))
        return strategies

    def classify(self, tagged: TaggedText, player_name: Optional[str] = None) -> Sport:
        for name, strategy in self._strategies(tagged, player_name):
            try:
                sport = strategy()
            except Exception as e:
                sport_logger.debug(f"🔍 Sport strategy '{name}' failed, skipping: {e}")
                continue
            if sport is not None and sport is not Sport.UNKNOWN:
                sport_logger.debug(f"🏟️ {sport.value} via {name}: {tagged.text!r}")
                return sport
        return Sport.UNKNOWN
