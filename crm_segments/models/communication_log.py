# crm_segments/models/communication_log.py
"""
CommunicationLog model - one pre-rendered message per targeted customer,
queued for delivery by the (external) sender.
"""

import uuid
from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey, func, text
from sqlalchemy.orm import relationship
from crm_segments.db.base_class import Base


class CommunicationLog(Base):
    __tablename__ = "communication_log"

    id = Column(
        String, primary_key=True, default=lambda: f"comm_{uuid.uuid4().hex[:12]}"
    )
    campaign_id = Column(
        String, ForeignKey("campaigns.campaign_id"), nullable=False, index=True
    )
    customer_id = Column(String, nullable=False, index=True)
    customer_email = Column(String, nullable=False)
    customer_name = Column(String, nullable=False)

    # Snapshot of the personalized message; never re-rendered.
    message_text = Column(Text, nullable=False)

    status = Column(String(20), nullable=False, server_default=text("'PENDING'"))
    # Options: 'PENDING', 'SENT', 'FAILED' (only PENDING is written here)
    attempts = Column(Integer, nullable=False, server_default=text("0"))
    max_attempts = Column(Integer, nullable=False, server_default=text("3"))

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    campaign = relationship("Campaign", back_populates="communications")
