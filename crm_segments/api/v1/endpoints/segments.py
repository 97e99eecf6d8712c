# crm_segments/api/v1/endpoints/segments.py
import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, status

from crm_segments.api import deps
from crm_segments.core.config import settings
from crm_segments.models.segment import Segment as SegmentModel
from crm_segments.schemas.common import CountResponse, DataResponse
from crm_segments.schemas.customer import CustomerSummary
from crm_segments.schemas.rule import parse_rule_groups
from crm_segments.schemas.segment import (
    AudiencePreviewRequest,
    Segment,
    SegmentCreate,
    SegmentUpdate,
)
from crm_segments.services.segment_service import SegmentService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Segments"])


def _segment_out(segment: SegmentModel) -> Segment:
    groups = parse_rule_groups(segment.rule_groups)
    out = Segment.model_validate(segment)
    out.rule_summary = [[rule.describe() for rule in group.rules] for group in groups]
    return out


@router.get("/segments", response_model=DataResponse[List[Segment]])
def list_segments(service: SegmentService = Depends(deps.get_segment_service)):
    """
    List all saved segments, newest first.
    """
    return DataResponse(data=[_segment_out(s) for s in service.list()])


@router.post(
    "/segments",
    response_model=DataResponse[Segment],
    status_code=status.HTTP_201_CREATED,
)
def create_segment(
    segment_in: SegmentCreate,
    service: SegmentService = Depends(deps.get_segment_service),
    identity: str = Depends(deps.get_current_identity),
):
    """
    Save a new segment.

    The audience preview count is computed once here and stored with the
    segment; a failed preview stores 0 instead of failing the request.
    """
    segment = service.create(
        name=segment_in.name,
        description=segment_in.description,
        rule_groups=segment_in.rule_groups,
        created_by=identity,
    )
    return DataResponse(data=_segment_out(segment), message="Segment created successfully")


@router.post("/segments/preview", response_model=CountResponse)
def preview_audience(
    preview_in: AudiencePreviewRequest,
    service: SegmentService = Depends(deps.get_segment_service),
):
    """
    Count the customers matching a set of rules without saving them.
    """
    return CountResponse(count=service.preview(preview_in.rule_groups or []))


@router.get("/segments/preview")
def sample_audience(
    rules: Optional[str] = Query(None, description="Rule groups as a JSON array"),
    limit: int = Query(10),
    service: SegmentService = Depends(deps.get_segment_service),
) -> Any:
    """
    Top matching customers (by total spend) for the segment builder.

    `limit` is clamped to 1..SAMPLE_LIMIT_MAX.
    """
    customers = service.sample(rules, limit=limit, max_limit=settings.SAMPLE_LIMIT_MAX)
    clamped = max(1, min(limit, settings.SAMPLE_LIMIT_MAX))
    return {
        "success": True,
        "data": [
            CustomerSummary.model_validate(row).model_dump(mode="json")
            for row in customers
        ],
        "count": len(customers),
        "limit": clamped,
    }


@router.get("/segments/{segment_id}", response_model=DataResponse[Segment])
def get_segment(
    segment_id: str,
    service: SegmentService = Depends(deps.get_segment_service),
):
    return DataResponse(data=_segment_out(service.get(segment_id)))


@router.put("/segments/{segment_id}", response_model=DataResponse[Segment])
def update_segment(
    segment_id: str,
    segment_in: SegmentUpdate,
    service: SegmentService = Depends(deps.get_segment_service),
):
    """
    Replace a segment's name, description and rules. The preview count is
    recomputed.
    """
    segment = service.update(
        segment_id,
        name=segment_in.name,
        description=segment_in.description,
        rule_groups=segment_in.rule_groups,
    )
    return DataResponse(data=_segment_out(segment), message="Segment updated successfully")


@router.delete("/segments/{segment_id}")
def delete_segment(
    segment_id: str,
    service: SegmentService = Depends(deps.get_segment_service),
):
    """
    Delete a segment. Refused with 409 while any campaign still uses it.
    """
    service.delete(segment_id)
    return {"success": True, "message": "Segment deleted successfully"}
