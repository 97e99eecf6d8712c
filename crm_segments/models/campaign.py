# crm_segments/models/campaign.py
"""
Campaign model - a one-time targeting and messaging action against a
segment's resolved audience.

Launch progress is persisted in `launch_state` after every step so that a
launch that failed half way can be detected and resumed:

    CREATED -> AUDIENCE_RESOLVED -> LOGGED -> FINALIZED
"""

import enum
import uuid
from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey, func, text
from sqlalchemy.orm import relationship
from crm_segments.db.base_class import Base


class CampaignStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"


class LaunchState(str, enum.Enum):
    CREATED = "CREATED"
    AUDIENCE_RESOLVED = "AUDIENCE_RESOLVED"
    LOGGED = "LOGGED"
    FINALIZED = "FINALIZED"


class Campaign(Base):
    __tablename__ = "campaigns"

    campaign_id = Column(
        String, primary_key=True, default=lambda: f"cmp_{uuid.uuid4().hex[:12]}"
    )
    name = Column(String(200), nullable=False)
    segment_id = Column(
        String, ForeignKey("segments.segment_id"), nullable=False, index=True
    )
    message_template = Column(Text, nullable=False)  # Supports {{placeholders}}
    campaign_type = Column(String(50), nullable=False)
    created_by = Column(String, nullable=False)

    status = Column(String(20), nullable=False, default=CampaignStatus.ACTIVE.value)
    launch_state = Column(String(30), nullable=False, default=LaunchState.CREATED.value)

    # Audience size at launch time, written once when the launch is finalized.
    target_audience_count = Column(Integer, nullable=False, server_default=text("0"))

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    segment = relationship("Segment", back_populates="campaigns")
    communications = relationship(
        "CommunicationLog", back_populates="campaign", cascade="all, delete-orphan"
    )
