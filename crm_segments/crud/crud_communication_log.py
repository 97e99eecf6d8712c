# crm_segments/crud/crud_communication_log.py
"""
CRUD operations for communication log entries.

One row per targeted customer, written in a single batch at launch time.
"""

from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from crm_segments.models.campaign import Campaign, LaunchState
from crm_segments.models.communication_log import CommunicationLog


class CRUDCommunicationLog:
    """CRUD operations for communication log entries."""

    def create_many(
        self, db: Session, *, campaign: Campaign, entries: List[dict]
    ) -> int:
        """
        Insert all entries for a campaign and move it to LOGGED in one commit.

        An empty batch inserts nothing but still records the state change.
        """
        if entries:
            db.add_all(CommunicationLog(**entry) for entry in entries)
        campaign.launch_state = LaunchState.LOGGED.value
        db.add(campaign)
        db.commit()
        return len(entries)

    def count_by_campaign(self, db: Session, campaign_id: str) -> int:
        return (
            db.query(func.count(CommunicationLog.id))
            .filter(CommunicationLog.campaign_id == campaign_id)
            .scalar()
            or 0
        )

    def get_by_campaign(
        self, db: Session, campaign_id: str, *, skip: int = 0, limit: int = 100
    ) -> List[CommunicationLog]:
        return (
            db.query(CommunicationLog)
            .filter(CommunicationLog.campaign_id == campaign_id)
            .order_by(CommunicationLog.customer_id)
            .offset(skip)
            .limit(limit)
            .all()
        )


communication_log = CRUDCommunicationLog()
