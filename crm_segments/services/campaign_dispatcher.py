# crm_segments/services/campaign_dispatcher.py
"""
Campaign launch: resolve a segment's audience and queue one personalized
message per customer.

Steps, each persisted on the campaign's launch_state:
1. create the campaign record (CREATED)
2. compile the segment rules and materialize the audience (AUDIENCE_RESOLVED)
3. render messages and batch-insert PENDING log rows (LOGGED)
4. write target_audience_count (FINALIZED)

The steps are not one transaction. A launch that fails part way leaves the
campaign at its last state with a zero target count; resume() picks it up
from there.
"""

import logging
from dataclasses import dataclass
from math import ceil
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crm_segments.core.exceptions import (
    AudienceResolutionError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from crm_segments.crud import crud_campaign, crud_communication_log, crud_segment
from crm_segments.models.campaign import Campaign, LaunchState
from crm_segments.models.communication_log import CommunicationLog
from crm_segments.models.segment import Segment
from crm_segments.services.audience_resolver import AudienceResolver
from crm_segments.services.predicate_compiler import compile_structured
from crm_segments.utils.templating import render

logger = logging.getLogger(__name__)

LOG_STATUS_PENDING = "PENDING"
MAX_DELIVERY_ATTEMPTS = 3


@dataclass
class LaunchResult:
    campaign_id: str
    campaign_name: str
    total_customers: int
    segment_name: str


def build_log_entries(campaign: Campaign, customers: list) -> List[dict]:
    """One PENDING log row per customer with the message already rendered."""
    return [
        {
            "campaign_id": campaign.campaign_id,
            "customer_id": customer.customer_id,
            "customer_email": customer.email or "",
            "customer_name": customer.name or "Unknown",
            "message_text": render(campaign.message_template, customer),
            "status": LOG_STATUS_PENDING,
            "attempts": 0,
            "max_attempts": MAX_DELIVERY_ATTEMPTS,
        }
        for customer in customers
    ]


class CampaignDispatcher:
    def __init__(self, db: Session):
        self.db = db
        self.resolver = AudienceResolver(db)

    def launch(
        self,
        *,
        name: Optional[str],
        segment_id: Optional[str],
        message_template: Optional[str],
        campaign_type: str,
        created_by: str,
    ) -> LaunchResult:
        missing = [
            field
            for field, value in (
                ("name", name),
                ("segment_id", segment_id),
                ("message_template", message_template),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise ValidationError(
                "Missing required fields: name, segment_id, message_template",
                field=missing[0],
            )

        segment = crud_segment.segment.get(self.db, segment_id)
        if segment is None:
            raise NotFoundError("Segment", segment_id)

        campaign = crud_campaign.campaign.create_for_segment(
            self.db,
            name=name.strip(),
            segment_id=segment.segment_id,
            message_template=message_template,
            campaign_type=campaign_type or "PROMOTIONAL",
            created_by=created_by,
        )
        logger.info(f"Campaign created: {campaign.campaign_id}")

        total = self._run_from_resolution(campaign, segment)
        return LaunchResult(
            campaign_id=campaign.campaign_id,
            campaign_name=campaign.name,
            total_customers=total,
            segment_name=segment.name,
        )

    def resume(self, campaign_id: str) -> LaunchResult:
        """Finish a launch that stopped before FINALIZED."""
        campaign = self.get(campaign_id)
        segment = campaign.segment

        state = LaunchState(campaign.launch_state)
        if state == LaunchState.FINALIZED:
            total = campaign.target_audience_count
        elif state == LaunchState.LOGGED:
            # Log rows are committed together with the LOGGED state.
            total = crud_communication_log.communication_log.count_by_campaign(
                self.db, campaign.campaign_id
            )
            self._finalize(campaign, total)
        else:
            logger.info(f"Resuming campaign {campaign_id} from {state.value}")
            total = self._run_from_resolution(campaign, segment)

        return LaunchResult(
            campaign_id=campaign.campaign_id,
            campaign_name=campaign.name,
            total_customers=total,
            segment_name=segment.name,
        )

    def _run_from_resolution(self, campaign: Campaign, segment: Segment) -> int:
        predicate = compile_structured(segment.rule_groups)
        try:
            customers = self.resolver.materialize(predicate)
        except StoreError as e:
            logger.error(
                f"Campaign {campaign.campaign_id} left at {campaign.launch_state}: "
                "audience resolution failed"
            )
            raise AudienceResolutionError(campaign.campaign_id) from e
        logger.info(f"Found {len(customers)} matching customers")

        try:
            crud_campaign.campaign.mark_launch_state(
                self.db, campaign=campaign, state=LaunchState.AUDIENCE_RESOLVED
            )

            entries = build_log_entries(campaign, customers)
            crud_communication_log.communication_log.create_many(
                self.db, campaign=campaign, entries=entries
            )
            logger.info(f"Created {len(entries)} communication log entries")
        except SQLAlchemyError as e:
            self._rollback_and_raise(campaign, e)

        self._finalize(campaign, len(customers))
        return len(customers)

    def _finalize(self, campaign: Campaign, total: int) -> None:
        try:
            crud_campaign.campaign.finalize(
                self.db, campaign=campaign, target_audience_count=total
            )
        except SQLAlchemyError as e:
            self._rollback_and_raise(campaign, e)

    def _rollback_and_raise(self, campaign: Campaign, error: SQLAlchemyError):
        campaign_id = campaign.campaign_id
        self.db.rollback()
        logger.error(f"Campaign {campaign_id} launch failed: {error}", exc_info=True)
        raise StoreError("Failed to create campaign") from error

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get(self, campaign_id: str) -> Campaign:
        campaign = crud_campaign.campaign.get(self.db, campaign_id)
        if campaign is None:
            raise NotFoundError("Campaign", campaign_id)
        return campaign

    def list(self, page: int = 1, limit: int = 10) -> Tuple[List[Campaign], dict]:
        page = max(page, 1)
        limit = max(limit, 1)
        skip = (page - 1) * limit
        campaigns, total = crud_campaign.campaign.get_page(self.db, skip=skip, limit=limit)
        pagination = {
            "currentPage": page,
            "limit": limit,
            "totalRecords": total,
            "totalPage": ceil(total / limit),
            "hasNext": skip + limit < total,
            "hasPrevious": page > 1,
        }
        return campaigns, pagination

    def communications(
        self, campaign_id: str, *, skip: int = 0, limit: int = 100
    ) -> List[CommunicationLog]:
        self.get(campaign_id)
        return crud_communication_log.communication_log.get_by_campaign(
            self.db, campaign_id, skip=skip, limit=limit
        )
