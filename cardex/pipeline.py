"""
Listing-title extraction pipeline.

    raw title
      -> normalize
      -> single span-tagging pass over every knowledge category
      -> field extractors (year, print run, card number, grading, brand,
         product, parallel)
      -> player-name resolver
      -> sport classifier
      -> card-type flags (catalog print runs scoped by year and sport)
      -> summary title + confidence

Everything is injected through ``ListingExtractor``; the module-level
``extract`` helper uses a cached default instance built from settings.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from cardex.errors import MalformedInput
from cardex.extractors import (
    combine_parallels,
    extract_card_number,
    extract_card_type_flags,
    extract_grading,
    extract_print_run,
    extract_year,
    pick_best,
    pick_brand,
    pick_parallel,
)
from cardex.knowledge import (
    BRAND,
    PARALLEL,
    PRODUCT,
    KnowledgeBase,
    SupabaseCatalogSource,
    load_knowledge_base,
)
from cardex.models.listing import (
    ExtractionContext,
    ExtractionResult,
    FieldChange,
    diff_extractions,
)
from cardex.models.sport import Sport
from cardex.normalizer import normalize
from cardex.player import PlayerNameResolver
from cardex.player_directory import EspnPlayerDirectory, PlayerDirectory
from cardex.sport import SportClassifier
from cardex.summary import compose_summary
from cardex.utils.config import Settings, get_settings
from cardex.utils.logger import extract_logger
from cardex.utils.supabase import get_supabase

CONFIDENCE_SLOTS = 7
AMBIGUOUS_SLOT_SCORE = 0.5


@dataclass(frozen=True)
class ReprocessOutcome:
    result: ExtractionResult
    changes: List[FieldChange] = field(default_factory=list)
    improved: bool = False


def _slot(found, ambiguous: bool = False) -> float:
    if not found:
        return 0.0
    return AMBIGUOUS_SLOT_SCORE if ambiguous else 1.0


def compute_confidence(slots: Sequence[Tuple[object, bool]]) -> float:
    """Mean of per-field scores over the fixed slot count, 2 decimals."""
    score = sum(_slot(found, ambiguous) for found, ambiguous in slots)
    return round(min(score / CONFIDENCE_SLOTS, 1.0), 2)


def _validate_title(title) -> str:
    if not isinstance(title, str):
        raise MalformedInput(f"title must be a string, got {type(title).__name__}")
    if not title.strip():
        raise MalformedInput("title is empty")
    return title


class ListingExtractor:
    def __init__(
        self,
        knowledge: KnowledgeBase,
        player_directory: Optional[PlayerDirectory] = None,
    ):
        self._lock = threading.Lock()
        self.player_directory = player_directory
        self._bind(knowledge)

    def _bind(self, knowledge: KnowledgeBase):
        self.knowledge = knowledge
        self.players = PlayerNameResolver(knowledge)
        self.sports = SportClassifier(knowledge, self.player_directory)

    def reload(self, knowledge: KnowledgeBase):
        """Swap in a freshly loaded knowledge base; in-flight calls keep the old one."""
        with self._lock:
            self._bind(knowledge)
        extract_logger.info("🔄 Knowledge base reloaded")

    # ------------------------------------------------------------------
    # single listing
    # ------------------------------------------------------------------
    def extract(self, title, context: Optional[ExtractionContext] = None) -> ExtractionResult:
        try:
            title = _validate_title(title)
        except MalformedInput as e:
            extract_logger.debug(f"🙅 Malformed listing title: {e}")
            return ExtractionResult.empty()

        with self._lock:
            knowledge, players, sports = self.knowledge, self.players, self.sports

        hint = context.known_player_name_hint if context else None

        text = normalize(title).text
        tagged = knowledge.tag(text)

        print_run = extract_print_run(text)
        year = extract_year(text)
        knowledge_spans = [(m.start, m.end) for m in tagged.matches]
        if print_run:
            knowledge_spans.append((print_run.start, print_run.end))
        card_number = extract_card_number(text, exclude=knowledge_spans)
        grader, grade = extract_grading(title)

        product = pick_best(tagged.of(PRODUCT))
        brand_matches = tagged.of(BRAND)
        brand = pick_brand(brand_matches, product)
        brand_match = pick_best(brand_matches)
        year_value = int(year.value) if year else None
        parallel = pick_parallel(
            combine_parallels(tagged.of(PARALLEL), tagged.text), product, knowledge, year_value
        )
        product_label = product.label if product else None

        consumed = [(e.start, e.end) for e in (year, print_run, card_number) if e is not None]
        player_name, player_ambiguous = players.resolve(tagged, consumed, hint)

        sport = sports.classify(tagged, player_name or hint)

        known_print_run = (
            knowledge.known_print_run(parallel.label, product_label, year_value, sport)
            if parallel
            else None
        )
        flags = extract_card_type_flags(
            tagged, print_run.value if print_run else None, known_print_run
        )

        summary = compose_summary(
            year.value if year else None,
            product_label,
            player_name,
            parallel.label if parallel else None,
            print_run.value if print_run else None,
            title,
            knowledge,
        )

        confidence = compute_confidence(
            [
                (sport is not Sport.UNKNOWN, False),
                (year, False),
                (brand, bool(brand_match and brand_match.ambiguous)),
                (product, bool(product and product.ambiguous)),
                (parallel or print_run, bool(parallel and parallel.ambiguous and not print_run)),
                (card_number, False),
                (player_name, player_ambiguous),
            ]
        )

        result = ExtractionResult(
            sport=sport,
            year=year_value,
            brand=brand,
            product=product_label,
            parallel=parallel.label if parallel else None,
            print_run=print_run.value if print_run else None,
            card_number=card_number.value if card_number else None,
            player_name=player_name,
            card_type_flags=flags,
            grader=grader,
            grade=grade,
            summary_title=summary,
            confidence=confidence,
        )
        extract_logger.debug(f"🃏 {title!r} -> {result.summary_title!r} ({confidence})")
        return result

    # ------------------------------------------------------------------
    # re-extraction
    # ------------------------------------------------------------------
    def reprocess(self, title, prior: Optional[ExtractionResult]) -> ReprocessOutcome:
        """Re-extract a stored listing and diff it against the stored result."""
        context = ExtractionContext(
            known_player_name_hint=prior.player_name if prior else None,
            prior_extraction=prior,
        )
        result = self.extract(title, context)
        changes = diff_extractions(prior, result)

        baseline = prior.confidence if prior else 0.0
        improved = bool(changes) and (
            result.confidence > baseline
            or (result.confidence == baseline and all(c.kind == "added" for c in changes))
        )
        return ReprocessOutcome(result=result, changes=changes, improved=improved)

    # ------------------------------------------------------------------
    # batch
    # ------------------------------------------------------------------
    def extract_batch(
        self,
        titles: Sequence,
        max_workers: int = 4,
        context: Optional[ExtractionContext] = None,
    ) -> List[ExtractionResult]:
        """Extract many titles on a thread pool; results keep input order."""
        if not titles:
            return []
        workers = max(1, min(max_workers, len(titles)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(lambda t: self.extract(t, context), titles))
        extract_logger.info(f"🃏 Extracted {len(results)} listings with {workers} workers")
        return results


# =============================================================================
# DEFAULT INSTANCE
# =============================================================================


def build_knowledge_base(settings: Optional[Settings] = None) -> KnowledgeBase:
    settings = settings or get_settings()
    catalog = None
    if settings.catalog_source == "supabase":
        try:
            catalog = SupabaseCatalogSource(get_supabase())
        except Exception as e:
            extract_logger.warning(f"⚠️ Supabase catalog unavailable, using static catalog: {e}")

    return load_knowledge_base(
        settings.knowledge_dir,
        catalog=catalog,
        use_static_catalog=settings.catalog_source != "none",
    )


def build_extractor(settings: Optional[Settings] = None) -> ListingExtractor:
    settings = settings or get_settings()
    directory = EspnPlayerDirectory.from_settings(settings) if settings.sport_lookup_enabled else None
    return ListingExtractor(build_knowledge_base(settings), player_directory=directory)


@lru_cache(maxsize=1)
def get_default_extractor() -> ListingExtractor:
    return build_extractor()


def extract(title, context: Optional[ExtractionContext] = None) -> ExtractionResult:
    """Extract one title with the default, settings-built extractor."""
    return get_default_extractor().extract(title, context)
