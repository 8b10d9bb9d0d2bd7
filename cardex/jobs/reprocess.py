"""Scheduled re-extraction of stored listings after knowledge updates."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from dateutil import parser as date_parser

from cardex.models.listing import ExtractionResult, RawListing
from cardex.pipeline import ListingExtractor, get_default_extractor
from cardex.utils.config import get_settings
from cardex.utils.logger import (
    log_database_operation,
    log_failure,
    log_success,
    scheduler_logger,
    supabase_logger,
)
from cardex.utils.supabase import get_supabase

LISTINGS_TABLE = "listings"
BATCH = 500


# ==============================================================================
# STORAGE
# ==============================================================================


class ListingStore(Protocol):
    def fetch_batch(self, offset: int, limit: int) -> List[Dict[str, Any]]: ...

    def upsert(self, records: List[Dict[str, Any]]) -> Dict[str, Any]: ...


class SupabaseListingStore:
    """Listings with their stored extraction in one Supabase table."""

    def __init__(self, client=None, table: str = LISTINGS_TABLE):
        if client is None:
            client = get_supabase()
        self.client = client
        self.table = table

    def fetch_batch(self, offset: int, limit: int) -> List[Dict[str, Any]]:
        resp = (
            self.client.table(self.table)
            .select("source_id, title, extraction, collected_at")
            .order("source_id")
            .range(offset, offset + limit - 1)
            .execute()
        )
        return resp.data or []

    def upsert(self, records: List[Dict[str, Any]]) -> Dict[str, Any]:
        results = {"count": 0, "records": [], "errors": []}
        if not records:
            return results

        try:
            # upsert in batches, accumulate returned representations
            for i in range(0, len(records), BATCH):
                batch = records[i : i + BATCH]
                resp = (
                    self.client.table(self.table)
                    .upsert(batch, on_conflict="source_id", returning="representation")
                    .execute()
                )
                batch_records = resp.data or []
                results["records"].extend(batch_records)
                results["count"] += len(batch_records)

            log_database_operation(supabase_logger, "Upserted", results["count"], self.table)
            return results
        except Exception as e:
            results["errors"].append(str(e))
            supabase_logger.error(f"❌ Failed to upsert {self.table}: {e}")
            return results


# ==============================================================================
# JOB
# ==============================================================================


def parse_collected_at(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return date_parser.parse(str(value))
    except (ValueError, OverflowError):
        scheduler_logger.debug(f"Unparseable collected_at {value!r}")
        return None


def _to_listing(row: Dict[str, Any]) -> RawListing:
    return RawListing(
        title=row.get("title") or "",
        source_id=row.get("source_id"),
        collected_at=parse_collected_at(row.get("collected_at")),
    )


def _prior(row: Dict[str, Any]) -> Optional[ExtractionResult]:
    stored = row.get("extraction")
    if not stored:
        return None
    return ExtractionResult.model_validate(stored)


class ReprocessJob:
    def __init__(
        self,
        store: ListingStore,
        extractor: Optional[ListingExtractor] = None,
        batch_size: int = BATCH,
    ):
        self.store = store
        self.extractor = extractor or get_default_extractor()
        self.batch_size = batch_size

    def _record(self, listing: RawListing, result: ExtractionResult) -> Dict[str, Any]:
        return {
            "source_id": listing.source_id,
            "title": listing.title,
            "extraction": result.model_dump(mode="json", by_alias=True),
            "confidence": result.confidence,
            "collected_at": listing.collected_at.isoformat() if listing.collected_at else None,
            "reprocessed_at": datetime.now(timezone.utc).isoformat(),
        }

    def run(self) -> Dict[str, int]:
        """Re-extract every stored listing; only changed records are written back."""
        counts = {"processed": 0, "improved": 0, "unchanged": 0, "errors": 0}
        offset = 0

        while True:
            rows = self.store.fetch_batch(offset, self.batch_size)
            if not rows:
                break

            pending = []
            for row in rows:
                counts["processed"] += 1
                try:
                    listing = _to_listing(row)
                    outcome = self.extractor.reprocess(listing.title, _prior(row))
                except Exception as e:
                    counts["errors"] += 1
                    scheduler_logger.error(f"❌ Reprocess failed for {row.get('source_id')}: {e}")
                    continue

                if not outcome.changes:
                    counts["unchanged"] += 1
                    continue
                if outcome.improved:
                    counts["improved"] += 1
                pending.append(self._record(listing, outcome.result))

            if pending:
                written = self.store.upsert(pending)
                counts["errors"] += len(written.get("errors", []))

            if len(rows) < self.batch_size:
                break
            offset += self.batch_size

        scheduler_logger.info(
            f"✅ Reprocess done: {counts['processed']} processed, {counts['improved']} improved, "
            f"{counts['unchanged']} unchanged, {counts['errors']} errors"
        )
        return counts


# ==============================================================================
# SCHEDULER
# ==============================================================================


class ReprocessScheduler:
    def __init__(self):
        self.scheduler = AsyncIOScheduler()
        self.is_running = False
        self.job: Optional[ReprocessJob] = None

    async def run_reprocess(self):
        if self.is_running:
            scheduler_logger.warning("Reprocess already running, skipping execution")
            return

        self.is_running = True
        try:
            if self.job is None:
                self.job = ReprocessJob(
                    SupabaseListingStore(), batch_size=get_settings().reprocess_batch_size
                )
            counts = await asyncio.to_thread(self.job.run)
            log_success(scheduler_logger, f"Reprocess run finished: {counts}")
        except Exception as e:
            log_failure(scheduler_logger, f"💥 Critical error in reprocess job: {e}")
        finally:
            self.is_running = False

    def start(self, cron: str) -> bool:
        self.scheduler.add_job(
            self.run_reprocess,
            CronTrigger.from_crontab(cron, timezone="UTC"),
            id="reprocess_listings",
            name="Listing Reprocess Job",
            replace_existing=True,
        )
        self.scheduler.start()
        scheduler_logger.info(f"📅 Reprocess scheduler started ({cron} UTC)")
        return True

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
            scheduler_logger.info("⏹️  Reprocess scheduler stopped")


# Global scheduler instance
reprocess_scheduler = ReprocessScheduler()


def start_reprocess_cronjob(cron: Optional[str] = None) -> bool:
    """Start the reprocess scheduler; no-op when no cron expression is configured."""
    cron = cron or get_settings().reprocess_cron
    if not cron:
        scheduler_logger.info("Reprocess cronjob disabled (REPROCESS_CRON not set)")
        return False
    return reprocess_scheduler.start(cron)


def stop_reprocess_cronjob():
    reprocess_scheduler.stop()
