import pytest

from cardex.knowledge import KnowledgeBase
from cardex.models.listing import ExtractionContext, ExtractionResult
from cardex.models.sport import CardTypeFlag, Sport
from cardex.pipeline import ListingExtractor, compute_confidence

CHASE = "2021 Panini Prizm- Ja'marr Chase- Rookie Pink Prizm- PSA 10 💎"
HEATH = "2021 Topps Chrome UEFA Women's Champions League Tobin Heath /25"


# ---------- End-to-end examples ----------

def test_chase_rookie_pink_prizm(extractor):
    result = extractor.extract(CHASE)
    assert result.sport == Sport.FOOTBALL
    assert result.year == 2021
    assert result.brand == "Panini"
    assert result.product == "Prizm"
    assert result.parallel == "Pink Prizm"
    assert result.player_name == "Ja'Marr Chase"
    assert result.card_type_flags == [CardTypeFlag.ROOKIE]
    assert (result.grader, result.grade) == ("PSA", "10")
    assert result.summary_title == "2021 Prizm Ja'Marr Chase Pink Prizm"
    assert result.confidence == 0.86


def test_specific_product_beats_generic_keywords(extractor):
    result = extractor.extract(HEATH)
    assert result.sport == Sport.SOCCER
    assert result.brand == "Topps"
    assert result.product == "Chrome UEFA Women's Champions League"
    assert result.player_name == "Tobin Heath"
    assert result.print_run == "/25"
    assert result.card_type_flags == [CardTypeFlag.NUMBERED]
    assert result.summary_title == "2021 Chrome UEFA Women's Champions League Tobin Heath /25"


def test_year_is_not_a_player(extractor):
    result = extractor.extract("2023 PSA 10")
    assert result.year == 2023
    assert result.player_name is None
    assert result.sport == Sport.UNKNOWN
    assert result.summary_title == "2023"


def test_card_number_and_unknown_player(extractor):
    result = extractor.extract("2023 Topps Chrome Zach Neto RC #144")
    assert result.card_number == "144"
    assert result.player_name == "Zach Neto"
    assert result.card_type_flags == [CardTypeFlag.ROOKIE]
    assert result.summary_title == "2023 Chrome Zach Neto"
    assert result.confidence == 0.71


@pytest.mark.parametrize("title", ["2021 Prizm Ja marr Chase", "2021 prizm ja'marr chase"])
def test_alias_spellings_resolve_to_canonical_name(extractor, title):
    assert extractor.extract(title).player_name == "Ja'Marr Chase"


def test_team_name_never_becomes_player(extractor):
    result = extractor.extract("Chicago Bulls Team Card Lot")
    assert result.player_name is None
    assert result.sport == Sport.BASKETBALL


def test_team_next_to_player_is_not_absorbed(extractor):
    result = extractor.extract("2024 Panini Prizm Anthony Edwards Bulls #123 PSA 10")
    assert result.player_name == "Anthony Edwards"
    assert result.card_number == "123"
    assert result.sport == Sport.BASKETBALL


def test_known_catalog_print_run_sets_numbered_flag(extractor):
    result = extractor.extract("2023 Panini Prizm Football Brock Purdy Gold Prizm")
    assert result.parallel == "Gold Prizm"
    assert result.print_run is None
    assert CardTypeFlag.NUMBERED in result.card_type_flags


@pytest.mark.parametrize(
    "title,parallel",
    [
        ("2022 Donruss Optic Red Wave Justin Herbert", "Red Wave"),
        ("2022 Donruss Optic Orange Wave Justin Herbert", "Orange Wave"),
        ("2023 Prizm White Sparkle Brock Purdy", "White Sparkle"),
    ],
)
def test_color_and_finish_form_one_parallel(extractor, title, parallel):
    assert extractor.extract(title).parallel == parallel


def test_catalog_print_run_needs_matching_year(extractor):
    # Orange Refractor is numbered only in the 2021 UEFA Chrome set
    result = extractor.extract("2023 Topps Chrome Zach Neto Orange Refractor")
    assert result.parallel == "Orange Refractor"
    assert CardTypeFlag.NUMBERED not in result.card_type_flags


# ---------- Invariants ----------

@pytest.mark.parametrize("title", [CHASE, HEATH, "2023 PSA 10", "mystery card", "1994-95 Fleer Ultra #25"])
def test_extraction_is_idempotent(extractor, title):
    assert extractor.extract(title).to_json() == extractor.extract(title).to_json()


@pytest.mark.parametrize("title", ["Silver Prizm Football Card Lot", "Hobby Box Sealed", "Rookie Auto"])
def test_no_name_is_fabricated(extractor, title):
    assert extractor.extract(title).player_name is None


@pytest.mark.parametrize("title", ["Rookie Auto", "💎 PSA 10 💎", "mystery"])
def test_summary_is_never_empty(extractor, title):
    assert extractor.extract(title).summary_title


# ---------- Malformed input ----------

@pytest.mark.parametrize("title", ["", "   ", None, 42])
def test_malformed_input_yields_empty_result(extractor, title):
    result = extractor.extract(title)
    assert result == ExtractionResult.empty()
    assert result.sport == Sport.UNKNOWN
    assert result.confidence == 0.0
    assert result.summary_title == ""


def test_empty_knowledge_still_extracts_regex_fields():
    result = ListingExtractor(KnowledgeBase()).extract("2023 Aaron Judge #99 /25")
    assert result.year == 2023
    assert result.card_number == "99"
    assert result.print_run == "/25"
    assert result.player_name == "Aaron Judge"
    assert result.sport == Sport.UNKNOWN


# ---------- Context ----------

def test_player_hint_found_in_title(extractor):
    context = ExtractionContext(known_player_name_hint="Ausar Thompson")
    result = extractor.extract("2023 Hoops Jalen Duren Ausar Thompson", context)
    assert result.player_name == "Ausar Thompson"


def test_vocabulary_hint_never_becomes_player(extractor):
    context = ExtractionContext(known_player_name_hint="Topps Chrome")
    result = extractor.extract("2023 Topps Chrome Gunnar Smith Gold Refractor", context)
    assert result.player_name == "Gunnar Smith"


def test_player_lookup_uses_hint_when_no_name_found(kb, make_directory):
    directory = make_directory({"Jaden Green": Sport.BASKETBALL})
    extractor = ListingExtractor(kb, player_directory=directory)
    context = ExtractionContext(knownPlayerNameHint="Jaden Green")
    assert extractor.extract("Hoops Green Silver", context).sport == Sport.BASKETBALL


# ---------- Confidence ----------

def test_confidence_counts_ambiguous_slots_as_half():
    slots = [(True, False)] * 6 + [(True, True)]
    assert compute_confidence(slots) == 0.93
    assert compute_confidence([(None, False)] * 7) == 0.0


# ---------- Reprocess ----------

def test_reprocess_reports_added_fields(extractor):
    outcome = extractor.reprocess(CHASE, ExtractionResult(year=2021, confidence=0.14))
    changed = {change.field: change.kind for change in outcome.changes}
    assert changed["playerName"] == "added"
    assert changed["sport"] == "added"
    assert "year" not in changed
    assert outcome.improved is True


def test_reprocess_of_same_result_is_unchanged(extractor):
    prior = extractor.extract(HEATH)
    outcome = extractor.reprocess(HEATH, prior)
    assert outcome.changes == []
    assert outcome.improved is False


def test_reprocess_reports_changed_fields(extractor):
    prior = ExtractionResult(player_name="Tobin Heat", confidence=0.99)
    outcome = extractor.reprocess(HEATH, prior)
    [player_change] = [c for c in outcome.changes if c.field == "playerName"]
    assert player_change.kind == "changed"
    assert player_change.old == "Tobin Heat"
    assert player_change.new == "Tobin Heath"
    assert outcome.improved is False


def test_reprocess_replaces_stored_name_absorbing_a_team(extractor):
    title = "2020 Topps Chrome Luis Robert White Sox Rookie #12"
    prior = ExtractionResult(player_name="Luis Robert White", confidence=0.5)
    outcome = extractor.reprocess(title, prior)
    assert outcome.result.player_name == "Luis Robert"
    [player_change] = [c for c in outcome.changes if c.field == "playerName"]
    assert (player_change.old, player_change.new) == ("Luis Robert White", "Luis Robert")


# ---------- Batch and reload ----------

def test_batch_preserves_order(extractor):
    titles = [HEATH, "", CHASE, "2023 PSA 10"]
    results = extractor.extract_batch(titles, max_workers=3)
    assert [r.player_name for r in results] == ["Tobin Heath", None, "Ja'Marr Chase", None]
    assert extractor.extract_batch([]) == []


def test_reload_swaps_knowledge(kb):
    extractor = ListingExtractor(KnowledgeBase())
    assert extractor.extract(CHASE).product is None
    extractor.reload(kb)
    assert extractor.extract(CHASE).product == "Prizm"
