# crm_segments/api/v1/endpoints/campaigns.py
"""
API endpoints for campaigns.

Launching a campaign resolves its segment's audience at that moment and
queues one PENDING communication log row per matching customer. Delivery
itself happens elsewhere.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Request, status

from crm_segments.api import deps
from crm_segments.core.config import settings
from crm_segments.core.limiter import limiter
from crm_segments.models.campaign import Campaign as CampaignModel
from crm_segments.schemas.campaign import (
    Campaign,
    CampaignCreate,
    CampaignLaunchResult,
    CommunicationLogEntry,
)
from crm_segments.schemas.common import DataResponse, PaginatedResponse, PaginationInfo
from crm_segments.services.campaign_dispatcher import CampaignDispatcher, LaunchResult
from crm_segments.utils.templating import unknown_placeholders

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Campaigns"])


def _campaign_out(campaign: CampaignModel) -> Campaign:
    out = Campaign.model_validate(campaign)
    if campaign.segment is not None:
        out.segment_name = campaign.segment.name
    return out


def _launch_response(result: LaunchResult) -> DataResponse[CampaignLaunchResult]:
    return DataResponse(
        data=CampaignLaunchResult(
            campaign_id=result.campaign_id,
            campaign_name=result.campaign_name,
            total_customers=result.total_customers,
            segment_name=result.segment_name,
        ),
        message=(
            f'Campaign "{result.campaign_name}" created successfully '
            f"with {result.total_customers} targeted customers"
        ),
    )


@router.post(
    "/campaigns",
    response_model=DataResponse[CampaignLaunchResult],
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.CAMPAIGN_RATE_LIMIT)
def launch_campaign(
    request: Request,
    campaign_in: CampaignCreate,
    dispatcher: CampaignDispatcher = Depends(deps.get_campaign_dispatcher),
    identity: str = Depends(deps.get_current_identity),
):
    """
    Create a campaign against a saved segment and queue its messages.

    Supported placeholders in message_template: {{name}}, {{email}},
    {{total_spend}}, {{total_orders}}, {{total_visits}}. Anything else is
    sent as written.
    """
    if campaign_in.message_template:
        unknown = unknown_placeholders(campaign_in.message_template)
        if unknown:
            logger.warning(f"Template uses unknown placeholders: {unknown}")

    result = dispatcher.launch(
        name=campaign_in.name,
        segment_id=campaign_in.segment_id,
        message_template=campaign_in.message_template,
        campaign_type=campaign_in.campaign_type,
        created_by=identity,
    )
    return _launch_response(result)


@router.get("/campaigns", response_model=PaginatedResponse[Campaign])
def list_campaigns(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    dispatcher: CampaignDispatcher = Depends(deps.get_campaign_dispatcher),
):
    campaigns, pagination = dispatcher.list(page=page, limit=limit)
    return PaginatedResponse(
        data=[_campaign_out(c) for c in campaigns],
        pagination=PaginationInfo(**pagination),
    )


@router.get("/campaigns/{campaign_id}", response_model=DataResponse[Campaign])
def get_campaign(
    campaign_id: str,
    dispatcher: CampaignDispatcher = Depends(deps.get_campaign_dispatcher),
):
    return DataResponse(data=_campaign_out(dispatcher.get(campaign_id)))


@router.post(
    "/campaigns/{campaign_id}/resume",
    response_model=DataResponse[CampaignLaunchResult],
)
def resume_campaign(
    campaign_id: str,
    dispatcher: CampaignDispatcher = Depends(deps.get_campaign_dispatcher),
):
    """
    Finish a launch that stopped part way. A finalized campaign is returned
    as it is.
    """
    return _launch_response(dispatcher.resume(campaign_id))


@router.get(
    "/campaigns/{campaign_id}/communications",
    response_model=DataResponse[List[CommunicationLogEntry]],
)
def list_communications(
    campaign_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    dispatcher: CampaignDispatcher = Depends(deps.get_campaign_dispatcher),
):
    logs = dispatcher.communications(campaign_id, skip=skip, limit=limit)
    return DataResponse(data=[CommunicationLogEntry.model_validate(entry) for entry in logs])
