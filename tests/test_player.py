import pytest

from cardex.normalizer import normalize
from cardex.player import PlayerNameResolver, case_word, normalize_player_name


def resolve(knowledge, title, hint=None, spans=()):
    tagged = knowledge.tag(normalize(title).text)
    return PlayerNameResolver(knowledge).resolve(tagged, spans, hint)


# ---------- Casing ----------

@pytest.mark.parametrize(
    "word,expected",
    [
        ("o'hearn", "O'Hearn"),
        ("SMITH-NJIGBA", "Smith-Njigba"),
        ("tj", "TJ"),
        ("iii", "III"),
        ("JR", "Jr"),
        ("McDavid", "McDavid"),
        ("bo", "Bo"),
        ("WEMBANYAMA", "Wembanyama"),
    ],
)
def test_case_word(word, expected):
    assert case_word(word) == expected


def test_normalize_player_name_applies_aliases(small_kb):
    assert normalize_player_name("ryan o hearn", small_kb) == "Ryan O'Hearn"
    assert normalize_player_name("t j watt", small_kb) == "TJ Watt"
    assert normalize_player_name("   ", small_kb) is None


# ---------- Known players ----------

def test_known_player_keyword_wins(small_kb):
    assert resolve(small_kb, "Topps Chrome mike trout RC") == ("Mike Trout", False)


def test_known_player_with_flexible_spelling(kb):
    name, _ = resolve(kb, "2021 Prizm Ja marr Chase Silver")
    assert name == "Ja'Marr Chase"
    name, _ = resolve(kb, "2021 prizm ja'marr chase")
    assert name == "Ja'Marr Chase"


# ---------- Residual window ----------

def test_name_from_residual_window(small_kb):
    assert resolve(small_kb, "2023 Topps Chrome ryan o hearn RC #12") == ("Ryan O'Hearn", False)


def test_initials_alias_in_window(small_kb):
    assert resolve(small_kb, "Topps t j watt Auto") == ("TJ Watt", False)


def test_upper_case_name_is_title_cased(kb):
    assert resolve(kb, "2022 Donruss RYAN WALKER rated rookie") == ("Ryan Walker", False)


def test_long_run_keeps_first_two_words_and_suffix(kb):
    name, _ = resolve(kb, "2023 Topps Michael Harris II Atlanta Legend")
    assert name == "Michael Harris II"


def test_denylisted_words_never_become_names(kb):
    assert resolve(kb, "Chicago Bulls Team Card Lot") == (None, False)
    assert resolve(kb, "Silver Prizm Football Card") == (None, False)


def test_digits_split_runs(small_kb):
    assert resolve(small_kb, "Aaron 99 Judge") == (None, False)


def test_too_long_name_is_rejected(small_kb):
    assert resolve(small_kb, "Bartholomew Maximilianus Wolfeschlegel") == (None, False)


def test_second_candidate_marks_ambiguity(small_kb):
    assert resolve(small_kb, "Aaron Judge Card Juan Soto") == ("Aaron Judge", True)


def test_consumed_spans_are_removed(small_kb):
    # Cutting "Judge" leaves no two-word run
    assert resolve(small_kb, "Aaron Judge", spans=[(6, 11)]) == (None, False)


# ---------- Hints ----------

def test_hint_found_in_title_is_used(kb):
    title = "2023 Hoops Jalen Duren Ausar Thompson"
    assert resolve(kb, title) == ("Jalen Duren", False)
    assert resolve(kb, title, hint="ausar thompson") == ("Ausar Thompson", False)


def test_hint_missing_from_title_is_ignored(small_kb):
    assert resolve(small_kb, "Topps Chrome Aaron Judge", hint="Juan Soto") == ("Aaron Judge", False)


def test_hint_made_of_knowledge_vocabulary_is_rejected(kb):
    title = "2023 Topps Chrome Gunnar Smith Gold Refractor"
    assert resolve(kb, title, hint="Topps Chrome") == ("Gunnar Smith", False)


def test_hint_with_denylisted_word_is_rejected(kb):
    # A color surname reads as knowledge vocabulary, hinted or not
    assert resolve(kb, "2023 Hoops Jaden Green Silver", hint="jaden green") == (None, False)


def test_hint_overlapping_a_team_is_rejected(kb):
    title = "2020 Topps Chrome Luis Robert White Sox Rookie #12"
    name, _ = resolve(kb, title, hint="Luis Robert White")
    assert name == "Luis Robert"


def test_hint_outside_length_bounds_is_rejected(kb):
    long_hint = "Bartholomew Maximilian Fitzgerald"
    title = f"2023 Hoops {long_hint}"
    assert resolve(kb, title, hint=long_hint) == (None, False)
