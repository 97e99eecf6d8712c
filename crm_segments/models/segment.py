# crm_segments/models/segment.py
import uuid
from sqlalchemy import Column, String, Integer, DateTime, Text, JSON, func, text
from sqlalchemy.orm import relationship
from crm_segments.db.base_class import Base


class Segment(Base):
    __tablename__ = "segments"

    segment_id = Column(
        String, primary_key=True, default=lambda: f"seg_{uuid.uuid4().hex[:12]}"
    )
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    # Ordered list of rule groups, OR-ed together at the top level:
    # [{"id": ..., "operator": "AND", "rules": [{"id", "field", "operator", "value"}]}]
    rule_groups = Column(JSON, nullable=False)

    # Cached audience size from the last create/update; never used for targeting.
    preview_count = Column(Integer, nullable=False, server_default=text("0"))

    created_by = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    campaigns = relationship("Campaign", back_populates="segment")
