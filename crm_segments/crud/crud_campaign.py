# crm_segments/crud/crud_campaign.py
"""
CRUD operations for campaigns.

Each launch step persists its own state transition, so every mark_* method
commits on its own.
"""

from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from .base import CRUDBase
from crm_segments.models.campaign import Campaign, CampaignStatus, LaunchState
from crm_segments.schemas.campaign import CampaignCreate


class CRUDCampaign(CRUDBase[Campaign, CampaignCreate, CampaignCreate]):

    def create_for_segment(
        self,
        db: Session,
        *,
        name: str,
        segment_id: str,
        message_template: str,
        campaign_type: str,
        created_by: str,
    ) -> Campaign:
        """Create the campaign record in ACTIVE status, before any targeting."""
        return self.create(
            db,
            obj_in={
                "name": name,
                "segment_id": segment_id,
                "message_template": message_template,
                "campaign_type": campaign_type,
                "created_by": created_by,
                "status": CampaignStatus.ACTIVE.value,
                "launch_state": LaunchState.CREATED.value,
                "target_audience_count": 0,
            },
        )

    def get_by_segment(self, db: Session, segment_id: str) -> List[Campaign]:
        """Campaigns referencing a segment (used to guard segment deletion)."""
        return (
            db.query(Campaign)
            .filter(Campaign.segment_id == segment_id)
            .order_by(Campaign.created_at.desc())
            .all()
        )

    def get_page(
        self, db: Session, *, skip: int = 0, limit: int = 10
    ) -> Tuple[List[Campaign], int]:
        """Newest campaigns first, with their segment loaded, plus the total count."""
        total = db.query(func.count(Campaign.campaign_id)).scalar() or 0
        campaigns = (
            db.query(Campaign)
            .options(joinedload(Campaign.segment))
            .order_by(Campaign.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return campaigns, total

    def mark_launch_state(
        self, db: Session, *, campaign: Campaign, state: LaunchState
    ) -> Campaign:
        campaign.launch_state = state.value
        db.add(campaign)
        db.commit()
        db.refresh(campaign)
        return campaign

    def finalize(
        self, db: Session, *, campaign: Campaign, target_audience_count: int
    ) -> Campaign:
        """Record the audience size at launch time and close the launch."""
        campaign.target_audience_count = target_audience_count
        campaign.launch_state = LaunchState.FINALIZED.value
        db.add(campaign)
        db.commit()
        db.refresh(campaign)
        return campaign


campaign = CRUDCampaign(Campaign, id_field="campaign_id")
