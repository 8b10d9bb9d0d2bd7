import pytest

from cardex.knowledge import (
    BRAND,
    CARD_TYPE,
    DENYLIST,
    PARALLEL,
    PLAYER_ALIAS,
    PRODUCT,
    SPORT_KEYWORD,
    TEAM,
    KnowledgeBase,
    KnowledgeTable,
    load_knowledge_base,
)
from cardex.models.knowledge import CatalogSet
from cardex.models.sport import Sport
from cardex.pipeline import ListingExtractor


class FakeDirectory:
    """In-memory player directory; records every lookup."""

    def __init__(self, answers=None, error=None):
        self.answers = answers or {}
        self.error = error
        self.calls = []

    def resolve_sport_for_player(self, name):
        self.calls.append(name)
        if self.error is not None:
            raise self.error
        return self.answers.get(name, Sport.UNKNOWN)


@pytest.fixture(scope="session")
def kb():
    return load_knowledge_base()


@pytest.fixture
def extractor(kb):
    return ListingExtractor(kb)


@pytest.fixture
def small_kb():
    tables = [
        KnowledgeTable.from_patterns(BRAND, ["Topps"]),
        KnowledgeTable.from_patterns(PRODUCT, [{"pattern": "Chrome", "brand": "Topps"}]),
        KnowledgeTable.from_patterns(PARALLEL, ["Gold Refractor", "Gold"]),
        KnowledgeTable.from_patterns(TEAM, [{"pattern": "Yankees", "sport": "Baseball"}]),
        KnowledgeTable.from_patterns(CARD_TYPE, [("RC", "rookie"), ("Auto", "auto")]),
        KnowledgeTable.from_patterns(
            SPORT_KEYWORD,
            [
                {"pattern": "Mike Trout", "sport": "Baseball", "kind": "player"},
                {"pattern": "NHL", "sport": "Hockey", "kind": "term"},
                {"pattern": "NFL", "sport": "Football", "kind": "term"},
            ],
        ),
        KnowledgeTable.from_patterns(PLAYER_ALIAS, ["O'Hearn", ("T J", "TJ")]),
        KnowledgeTable.from_patterns(DENYLIST, ["Card", "Lot"]),
    ]
    catalog = [CatalogSet(set_name="2023 Topps Chrome Baseball", sport="Baseball", year=2023)]
    return KnowledgeBase(tables, catalog_sets=catalog)


@pytest.fixture
def make_directory():
    return FakeDirectory
