"""Catalog sources: sport-tagged sets and their parallels."""

import json
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Union

from cardex.errors import KnowledgeTableUnavailable
from cardex.models.knowledge import CatalogParallel, CatalogSet
from cardex.utils.logger import supabase_logger
from cardex.utils.supabase import supabase_apply_filter


class CatalogSource(Protocol):
    def get_parallels_for_set(self, set_name: str) -> List[CatalogParallel]: ...

    def get_all_sets(self) -> List[CatalogSet]: ...


class StaticCatalogSource:
    """In-process catalog, usually loaded from ``data/catalog.json``."""

    def __init__(
        self,
        sets: Sequence[CatalogSet] = (),
        parallels: Optional[Dict[str, Sequence[CatalogParallel]]] = None,
    ):
        self._sets = list(sets)
        self._parallels = {
            name.lower(): list(items) for name, items in (parallels or {}).items()
        }

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "StaticCatalogSource":
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            sets = [CatalogSet(**item) for item in raw.get("sets", [])]
            parallels = {
                name: [CatalogParallel(**p) for p in items]
                for name, items in raw.get("parallels", {}).items()
            }
        except (OSError, ValueError, TypeError, AttributeError) as e:
            raise KnowledgeTableUnavailable(str(path), str(e)) from e
        return cls(sets, parallels)

    def get_parallels_for_set(self, set_name: str) -> List[CatalogParallel]:
        return list(self._parallels.get(set_name.lower(), []))

    def get_all_sets(self) -> List[CatalogSet]:
        return list(self._sets)


class SupabaseCatalogSource:
    """Read-only catalog backed by the ``card_sets`` and ``parallels`` tables."""

    def __init__(self, client, sets_table: str = "card_sets", parallels_table: str = "parallels"):
        self.client = client
        self.sets_table = sets_table
        self.parallels_table = parallels_table

    def get_all_sets(self) -> List[CatalogSet]:
        try:
            resp = (
                self.client.table(self.sets_table)
                .select("set_name, sport, year, brand")
                .execute()
            )
        except Exception as e:
            raise KnowledgeTableUnavailable(self.sets_table, str(e)) from e

        rows = resp.data or []
        supabase_logger.info(f"💾 Loaded {len(rows)} catalog sets from {self.sets_table}")
        return [
            CatalogSet(
                set_name=row.get("set_name") or "",
                sport=row.get("sport"),
                year=row.get("year"),
                brand=row.get("brand"),
            )
            for row in rows
            if row.get("set_name")
        ]

    def get_parallels_for_set(self, set_name: str) -> List[CatalogParallel]:
        try:
            query = self.client.table(self.parallels_table).select(
                "parallel_name, parallel_type, rarity, print_run"
            )
            resp = supabase_apply_filter(query, {"set_name": set_name}).execute()
        except Exception as e:
            raise KnowledgeTableUnavailable(self.parallels_table, str(e)) from e

        return [
            CatalogParallel(
                name=row["parallel_name"],
                type=row.get("parallel_type"),
                rarity=row.get("rarity"),
                print_run=_format_print_run(row.get("print_run")),
            )
            for row in (resp.data or [])
            if row.get("parallel_name")
        ]


def _format_print_run(value) -> Optional[str]:
    if value is None or value == "":
        return None
    text = str(value).strip()
    return text if text.startswith("/") else f"/{text}"
