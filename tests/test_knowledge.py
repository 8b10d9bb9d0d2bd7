import json

import pytest

from cardex.errors import KnowledgeTableUnavailable
from cardex.knowledge import (
    BRAND,
    PARALLEL,
    PRODUCT,
    SPORT_KEYWORD,
    KnowledgeBase,
    KnowledgeTable,
    StaticCatalogSource,
    SupabaseCatalogSource,
    load_knowledge_base,
    load_table_file,
)
from cardex.knowledge.table import compile_pattern
from cardex.models.knowledge import CatalogParallel, CatalogSet
from cardex.models.sport import Sport
from cardex.normalizer import normalize


# ---------- Pattern compilation ----------

def test_pattern_matches_with_flexible_separators():
    regex, specificity = compile_pattern("Ja'Marr Chase")
    assert specificity == len("JaMarrChase")
    assert regex.search("ja marr chase")
    assert regex.search("JAMARR CHASE")
    assert regex.search("Ja-Marr Chase")


def test_pattern_respects_word_boundaries():
    regex, _ = compile_pattern("Gold")
    assert regex.search("Gold Refractor")
    assert not regex.search("Goldschmidt")


def test_pattern_without_alphanumerics_is_rejected():
    assert compile_pattern("--")[0] is None


# ---------- Lookup and overlap resolution ----------

def test_lookup_orders_matches_by_start():
    table = KnowledgeTable.from_patterns(PARALLEL, ["Silver", "Gold"])
    matches = table.lookup("gold and silver")
    assert [m.label for m in matches] == ["Gold", "Silver"]


def test_most_specific_pattern_wins_overlap():
    table = KnowledgeTable.from_patterns(PARALLEL, ["Gold", "Gold Refractor"])
    matches = table.lookup("Topps Chrome Gold Refractor")
    assert [m.label for m in matches] == ["Gold Refractor"]


def test_equal_specificity_tie_keeps_declaration_order_and_flags_ambiguity():
    table = KnowledgeTable.from_patterns(PARALLEL, [("Gold", "Gold Wave"), ("Gold", "Gold Foil")])
    [match] = table.lookup("gold")
    assert match.label == "Gold Wave"
    assert match.ambiguous is True


def test_product_beats_shorter_keywords_in_single_tagging_pass(kb):
    text = normalize("2021 Topps Chrome UEFA Women's Champions League Tobin Heath /25").text
    tagged = kb.tag(text)
    assert [m.label for m in tagged.of(PRODUCT)] == ["Chrome UEFA Women's Champions League"]
    assert [m.label for m in tagged.of(BRAND)] == ["Topps"]
    assert [m.label for m in tagged.players()] == ["Tobin Heath"]
    # "UEFA" and "Champions League" sit inside the product span
    assert all(m.entry.kind == "player" for m in tagged.of(SPORT_KEYWORD))


# ---------- Denylist ----------

def test_denylist_includes_single_word_knowledge_patterns(kb):
    assert kb.is_denylisted("Bulls")
    assert kb.is_denylisted("prizm")
    assert kb.is_denylisted("Card")


def test_denylist_excludes_player_names(kb):
    assert not kb.is_denylisted("Chase")
    assert not kb.is_denylisted("Trout")


# ---------- Catalog ----------

def test_known_print_run_from_catalog(kb):
    assert kb.known_print_run("Gold Prizm", "Prizm") == "/10"
    assert kb.known_print_run("Pink Prizm", "Prizm") is None


def test_known_print_run_checks_year_and_sport(kb):
    assert kb.known_print_run("Orange Refractor", "Chrome") == "/25"
    assert kb.known_print_run("Orange Refractor", "Chrome", 2021, Sport.SOCCER) == "/25"
    assert kb.known_print_run("Orange Refractor", "Chrome", 2023) is None
    assert kb.known_print_run("Orange Refractor", "Chrome", sport=Sport.BASEBALL) is None
    assert kb.known_print_run("Gold Refractor", "Chrome", 2023, Sport.BASEBALL) == "/50"
    assert kb.known_print_run("Orange Refractor", "Chrome", 2021, Sport.UNKNOWN) == "/25"


def test_scoped_parallel(kb):
    assert kb.is_scoped_parallel("Orange Refractor", "Chrome UEFA Women's Champions League")
    assert not kb.is_scoped_parallel("Orange Refractor", None)


def test_catalog_parallels_are_loaded_first(tmp_path):
    catalog = StaticCatalogSource(
        sets=[CatalogSet(set_name="2023 Topps Chrome Baseball", sport="Baseball")],
        parallels={
            "2023 Topps Chrome Baseball": [CatalogParallel(name="Gold Refractor", print_run="/50")]
        },
    )
    knowledge = load_knowledge_base(tmp_path, catalog=catalog)
    [entry] = knowledge.table(PARALLEL).entries
    assert entry.product == "2023 Topps Chrome Baseball"
    assert entry.print_run == "/50"
    assert knowledge.catalog_sets[0].sport == "Baseball"


# ---------- Loading and degradation ----------

def test_packaged_tables_load(kb):
    categories = {info["category"] for info in kb.describe()}
    assert {"brand", "product", "parallel", "team", "sport_keyword", "catalog"} <= categories


def test_missing_directory_degrades_to_empty_tables(tmp_path):
    knowledge = load_knowledge_base(tmp_path / "missing")
    assert len(knowledge.table(BRAND)) == 0
    assert knowledge.tag("2023 Topps Chrome").matches == ()


def test_unreadable_table_raises_unavailable(tmp_path):
    path = tmp_path / "brands.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(KnowledgeTableUnavailable):
        load_table_file(path, BRAND)


def test_table_file_with_wrong_category_is_rejected(tmp_path):
    path = tmp_path / "brands.json"
    path.write_text(json.dumps({"category": "team", "entries": []}), encoding="utf-8")
    with pytest.raises(KnowledgeTableUnavailable):
        load_table_file(path, BRAND)


def test_table_file_aliases_share_label(tmp_path):
    path = tmp_path / "brands.json"
    path.write_text(
        json.dumps(
            {
                "name": "brands",
                "version": "7",
                "category": "brand",
                "entries": [{"pattern": "Upper Deck", "aliases": ["UD"]}],
            }
        ),
        encoding="utf-8",
    )
    table = load_table_file(path, BRAND)
    assert table.version == "7"
    assert [m.label for m in table.lookup("1993 UD SP")] == ["Upper Deck"]


def test_bad_file_leaves_other_categories_intact(tmp_path):
    (tmp_path / "brands.json").write_text("[]", encoding="utf-8")
    (tmp_path / "teams.json").write_text(
        json.dumps({"category": "team", "entries": [{"pattern": "Yankees", "sport": "Baseball"}]}),
        encoding="utf-8",
    )
    knowledge = load_knowledge_base(tmp_path, use_static_catalog=False)
    assert len(knowledge.table(BRAND)) == 0
    assert [m.label for m in knowledge.lookup("team", "Judge Yankees")] == ["Yankees"]


def test_knowledge_base_renumbers_order_across_tables():
    first = KnowledgeTable.from_patterns(PARALLEL, ["Gold"], name="a")
    second = KnowledgeTable.from_patterns(PARALLEL, ["Silver"], name="b")
    knowledge = KnowledgeBase([first, second])
    assert [e.order for e in knowledge.table(PARALLEL)] == [0, 1]
    assert knowledge.table(PARALLEL).name == "a+b"


# ---------- Supabase catalog ----------

class FakeCatalogQuery:
    def __init__(self, rows, error=None):
        self.rows = rows
        self.error = error
        self.filters = []

    def select(self, columns):
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def execute(self):
        if self.error:
            raise self.error
        return type("Resp", (), {"data": self.rows})()


class FakeCatalogClient:
    def __init__(self, tables):
        self.tables = tables

    def table(self, name):
        return self.tables[name]


def test_supabase_catalog_reads_sets_and_parallels():
    parallels = FakeCatalogQuery(
        [
            {"parallel_name": "Gold Prizm", "parallel_type": "color", "print_run": 10},
            {"parallel_name": None},
        ]
    )
    client = FakeCatalogClient(
        {
            "card_sets": FakeCatalogQuery([{"set_name": "2023 Panini Prizm Football", "sport": "Football"}]),
            "parallels": parallels,
        }
    )
    source = SupabaseCatalogSource(client)

    [catalog_set] = source.get_all_sets()
    assert catalog_set.sport == "Football"
    [parallel] = source.get_parallels_for_set("2023 Panini Prizm Football")
    assert (parallel.name, parallel.print_run) == ("Gold Prizm", "/10")
    assert parallels.filters == [("set_name", "2023 Panini Prizm Football")]


def test_supabase_catalog_failure_is_table_unavailable():
    client = FakeCatalogClient({"card_sets": FakeCatalogQuery([], error=RuntimeError("down"))})
    with pytest.raises(KnowledgeTableUnavailable):
        SupabaseCatalogSource(client).get_all_sets()
