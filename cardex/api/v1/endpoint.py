from typing import List

from fastapi import APIRouter, Depends

from cardex.models.api import (
    BatchExtractRequest,
    ExtractRequest,
    KnowledgeResponse,
    KnowledgeTableInfo,
    ReprocessRequest,
    ReprocessResponse,
)
from cardex.models.listing import ExtractionResult
from cardex.pipeline import ListingExtractor, build_knowledge_base, get_default_extractor
from cardex.utils.config import get_settings
from cardex.utils.logger import api_logger, log_api_request
from cardex.utils.safe_handler import safe_handler

router = APIRouter()


# Dependency injection
def get_extractor() -> ListingExtractor:
    """Dependency injection for the listing extractor."""
    return get_default_extractor()


# ===============================================================
# EXTRACTION
# ===============================================================


@router.post(
    "/extract",
    summary="Extract structured fields from one listing title",
    response_model=ExtractionResult,
)
@safe_handler()
def extract_listing(
    payload: ExtractRequest,
    extractor: ListingExtractor = Depends(get_extractor),
):
    log_api_request(api_logger, "POST", "/extract", {"title": payload.title})
    return extractor.extract(payload.title, payload.context)


@router.post(
    "/extract/batch",
    summary="Extract structured fields from many listing titles",
    response_model=List[ExtractionResult],
)
@safe_handler()
def extract_listings(
    payload: BatchExtractRequest,
    extractor: ListingExtractor = Depends(get_extractor),
):
    log_api_request(api_logger, "POST", "/extract/batch", {"count": len(payload.titles)})
    return extractor.extract_batch(payload.titles, max_workers=get_settings().batch_max_workers)


@router.post(
    "/reprocess",
    summary="Re-extract a stored listing and diff it against the stored result",
    response_model=ReprocessResponse,
)
@safe_handler()
def reprocess_listing(
    payload: ReprocessRequest,
    extractor: ListingExtractor = Depends(get_extractor),
):
    log_api_request(api_logger, "POST", "/reprocess", {"title": payload.title})
    outcome = extractor.reprocess(payload.title, payload.prior_extraction)
    if outcome.changes:
        api_logger.info(
            f"🔁 {len(outcome.changes)} field(s) changed, improved={outcome.improved}"
        )
    return ReprocessResponse(
        result=outcome.result, changes=outcome.changes, improved=outcome.improved
    )


# ===============================================================
# KNOWLEDGE TABLES
# ===============================================================


def _knowledge_response(extractor: ListingExtractor) -> KnowledgeResponse:
    return KnowledgeResponse(
        tables=[KnowledgeTableInfo(**info) for info in extractor.knowledge.describe()],
        denylist_size=len(extractor.knowledge.denylist),
    )


@router.get(
    "/knowledge",
    summary="List loaded knowledge tables",
    response_model=KnowledgeResponse,
)
@safe_handler()
def list_knowledge(extractor: ListingExtractor = Depends(get_extractor)):
    log_api_request(api_logger, "GET", "/knowledge")
    return _knowledge_response(extractor)


@router.post(
    "/knowledge/reload",
    summary="Reload knowledge tables from their sources",
    response_model=KnowledgeResponse,
)
@safe_handler()
def reload_knowledge(extractor: ListingExtractor = Depends(get_extractor)):
    log_api_request(api_logger, "POST", "/knowledge/reload")
    extractor.reload(build_knowledge_base(get_settings()))
    return _knowledge_response(extractor)
