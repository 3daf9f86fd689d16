"""
Similarity API Endpoints

Near-duplicate detection and moderation:
- Synchronous check and background queueing
- Pairwise comparison with similar text segments
- Moderation queue and admin decisions
"""

from typing import List

import structlog
from fastapi import APIRouter, status

from docsearch.api.dependencies import (
    DetectionServiceDep,
    ModerationServiceDep,
    map_domain_exception_to_http,
)
from docsearch.api.schemas.similarity_schemas import (
    SimilarityCheckResponse,
    SimilarityComparisonResponse,
    SimilarityDecisionRequest,
    SimilarityJobResponse,
    SimilarityMatchResponse,
    SimilarityRecordResponse,
)
from docsearch.domain.exceptions import DomainException, NotFoundError

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/similarity", tags=["similarity"])


@router.post("/documents/{document_id}/check", response_model=SimilarityCheckResponse)
async def check_document_similarity(
    document_id: str,
    detection_service: DetectionServiceDep,
) -> SimilarityCheckResponse:
    """Run duplicate detection now and return the best matches."""
    try:
        matches = await detection_service.detect_similar_documents(document_id)
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)

    return SimilarityCheckResponse(
        document_id=document_id,
        has_similar_documents=any(match.flagged for match in matches),
        highest_similarity_score=round(matches[0].combined_score, 4) if matches else 0.0,
        matches=[SimilarityMatchResponse.from_match(match) for match in matches],
    )


@router.post(
    "/documents/{document_id}/queue",
    response_model=SimilarityJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def queue_document_similarity(
    document_id: str,
    detection_service: DetectionServiceDep,
) -> SimilarityJobResponse:
    """Queue background duplicate detection; an active job for the document is reused."""
    try:
        job = await detection_service.queue_detection(document_id)
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    return SimilarityJobResponse.from_job(job)


@router.get("/jobs/{job_id}", response_model=SimilarityJobResponse)
async def get_similarity_job(job_id: str, detection_service: DetectionServiceDep) -> SimilarityJobResponse:
    job = await detection_service.get_job(job_id)
    if job is None:
        raise map_domain_exception_to_http(NotFoundError(f"Similarity job {job_id} not found"))
    return SimilarityJobResponse.from_job(job)


@router.get("/documents/{source_id}/compare/{target_id}", response_model=SimilarityComparisonResponse)
async def compare_documents(
    source_id: str,
    target_id: str,
    detection_service: DetectionServiceDep,
) -> SimilarityComparisonResponse:
    """Score breakdown and similar text segments for a document pair."""
    try:
        comparison = await detection_service.compare_documents(source_id, target_id)
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    return SimilarityComparisonResponse(**comparison)


@router.get("/documents/{document_id}/pending", response_model=List[SimilarityRecordResponse])
async def get_pending_similarities(
    document_id: str,
    moderation_service: ModerationServiceDep,
) -> List[SimilarityRecordResponse]:
    """Unreviewed flags for a document, highest score first."""
    pending = await moderation_service.get_pending_for_document(document_id)
    return [
        SimilarityRecordResponse.from_record(
            item.record,
            target_title=item.target_document.title if item.target_document else None,
        )
        for item in pending
    ]


@router.post("/records/{record_id}/decision", response_model=SimilarityRecordResponse)
async def decide_similarity(
    record_id: str,
    decision: SimilarityDecisionRequest,
    moderation_service: ModerationServiceDep,
) -> SimilarityRecordResponse:
    """Confirm or dismiss a flagged pair."""
    try:
        record = await moderation_service.record_decision(
            record_id,
            admin_id=decision.admin_id,
            is_duplicate=decision.is_duplicate,
            notes=decision.notes,
        )
    except DomainException as domain_exc:
        raise map_domain_exception_to_http(domain_exc)
    return SimilarityRecordResponse.from_record(record)
