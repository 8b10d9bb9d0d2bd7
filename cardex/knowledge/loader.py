"""
Loading knowledge tables from versioned JSON files and catalog sources.

Every failure degrades to an empty category with a warning; loading never
raises to the caller.
"""

import json
from pathlib import Path
from typing import Iterable, List, Optional, Union

from cardex.errors import KnowledgeTableUnavailable
from cardex.knowledge.catalog import CatalogSource, StaticCatalogSource
from cardex.knowledge.table import (
    CATEGORIES,
    PARALLEL,
    KnowledgeBase,
    KnowledgeTable,
    make_entry,
)
from cardex.models.knowledge import CatalogSet, KnowledgeEntry
from cardex.utils.logger import knowledge_logger

TABLE_FILES = {
    "brand": "brands.json",
    "product": "products.json",
    "parallel": "parallels.json",
    "team": "teams.json",
    "grading": "grading.json",
    "card_type": "card_types.json",
    "sport_keyword": "sport_keywords.json",
    "player_alias": "player_aliases.json",
    "denylist": "denylist.json",
}

CATALOG_FILE = "catalog.json"

_METADATA_KEYS = ("sport", "brand", "product", "kind", "print_run")


def _expand_records(category: str, records: Iterable[dict]) -> List[KnowledgeEntry]:
    entries = []

    def add(pattern: str, label: Optional[str], meta: dict):
        entry = make_entry(pattern, category, len(entries), label=label, **meta)
        if entry is not None:
            entries.append(entry)

    for record in records:
        meta = {key: record.get(key) for key in _METADATA_KEYS}
        # Compact form: one record carrying many patterns sharing metadata
        for pattern in record.get("patterns", []):
            add(pattern, None, meta)
        if "pattern" in record:
            label = record.get("label") or record["pattern"]
            add(record["pattern"], label, meta)
            for alias in record.get("aliases", []):
                add(alias, label, meta)
    return entries


def load_table_file(path: Union[str, Path], category: Optional[str] = None) -> KnowledgeTable:
    """Load one table file; raises KnowledgeTableUnavailable on any problem."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        table_category = raw.get("category") or category
        if category and table_category != category:
            raise ValueError(f"expected category {category!r}, found {table_category!r}")
        if table_category not in CATEGORIES:
            raise ValueError(f"unknown category {table_category!r}")
        entries = _expand_records(table_category, raw.get("entries", []))
    except (OSError, ValueError, TypeError, AttributeError, KeyError) as e:
        raise KnowledgeTableUnavailable(str(path), str(e)) from e

    return KnowledgeTable(
        name=raw.get("name") or path.stem,
        category=table_category,
        entries=entries,
        version=str(raw.get("version", "0")),
    )


def _catalog_parallel_table(catalog: CatalogSource, sets: List[CatalogSet]) -> KnowledgeTable:
    entries = []
    for catalog_set in sets:
        try:
            parallels = catalog.get_parallels_for_set(catalog_set.set_name)
        except Exception as e:
            knowledge_logger.warning(f"⚠️ Parallels unavailable for {catalog_set.set_name}: {e}")
            continue
        for parallel in parallels:
            entry = make_entry(
                parallel.name,
                PARALLEL,
                len(entries),
                product=catalog_set.set_name,
                kind=parallel.type,
                print_run=parallel.print_run,
                sport=catalog_set.sport,
                year=catalog_set.year,
            )
            if entry is not None:
                entries.append(entry)
    return KnowledgeTable(name="catalog_parallels", category=PARALLEL, entries=entries, version="catalog")


def load_knowledge_base(
    data_dir: Optional[Union[str, Path]] = None,
    catalog: Optional[CatalogSource] = None,
    use_static_catalog: bool = True,
) -> KnowledgeBase:
    """
    Build a KnowledgeBase from the table files in ``data_dir``.

    Args:
        data_dir: Directory holding the JSON table files (packaged data by default)
        catalog: Optional catalog source; replaces ``catalog.json`` when given
        use_static_catalog: Load ``catalog.json`` when no catalog is given
    """
    from cardex.utils.config import DEFAULT_KNOWLEDGE_DIR

    data_dir = Path(data_dir or DEFAULT_KNOWLEDGE_DIR)
    tables: List[KnowledgeTable] = []

    for category, filename in TABLE_FILES.items():
        try:
            table = load_table_file(data_dir / filename, category)
        except KnowledgeTableUnavailable as e:
            knowledge_logger.warning(f"⚠️ Knowledge table '{category}' unavailable, using empty table: {e}")
            continue
        knowledge_logger.debug(f"📚 Loaded {len(table)} {category} entries (v{table.version})")
        tables.append(table)

    if catalog is None and use_static_catalog:
        try:
            catalog = StaticCatalogSource.from_file(data_dir / CATALOG_FILE)
        except KnowledgeTableUnavailable as e:
            knowledge_logger.warning(f"⚠️ Static catalog unavailable: {e}")

    sets: List[CatalogSet] = []
    if catalog is not None:
        try:
            sets = catalog.get_all_sets()
        except Exception as e:
            knowledge_logger.warning(f"⚠️ Catalog unavailable, continuing without it: {e}")
        else:
            # Set-scoped parallels go first so they win equal-specificity ties
            tables.insert(0, _catalog_parallel_table(catalog, sets))

    kb = KnowledgeBase(tables, catalog_sets=sets)
    knowledge_logger.info(
        f"📚 Knowledge base ready: {sum(len(t) for t in tables)} entries, {len(sets)} catalog sets"
    )
    return kb
