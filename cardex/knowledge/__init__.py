from cardex.knowledge.catalog import CatalogSource, StaticCatalogSource, SupabaseCatalogSource
from cardex.knowledge.loader import load_knowledge_base, load_table_file
from cardex.knowledge.table import (
    BRAND,
    CARD_TYPE,
    DENYLIST,
    GRADING,
    PARALLEL,
    PLAYER_ALIAS,
    PRODUCT,
    SPORT_KEYWORD,
    TEAM,
    KnowledgeBase,
    KnowledgeTable,
    TaggedText,
)

__all__ = [
    "BRAND",
    "CARD_TYPE",
    "CatalogSource",
    "DENYLIST",
    "GRADING",
    "KnowledgeBase",
    "KnowledgeTable",
    "PARALLEL",
    "PLAYER_ALIAS",
    "PRODUCT",
    "SPORT_KEYWORD",
    "StaticCatalogSource",
    "SupabaseCatalogSource",
    "TEAM",
    "TaggedText",
    "load_knowledge_base",
    "load_table_file",
]
