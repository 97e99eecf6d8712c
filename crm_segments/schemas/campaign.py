# crm_segments/schemas/campaign.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CampaignCreate(BaseModel):
    """Schema for launching a campaign against a segment."""

    name: Optional[str] = Field(None, json_schema_extra={"example": "Black Friday Sale"})
    segment_id: Optional[str] = Field(None, json_schema_extra={"example": "seg_3f9a1c2b7d4e"})
    message_template: Optional[str] = Field(
        None,
        json_schema_extra={
            "example": "Hi {{name}}, you've spent {{total_spend}} with us. Use SAVE20!"
        },
    )
    campaign_type: str = Field("PROMOTIONAL", json_schema_extra={"example": "PROMOTIONAL"})


class CampaignLaunchResult(BaseModel):
    campaign_id: str
    campaign_name: str
    total_customers: int
    segment_name: str


class Campaign(BaseModel):
    campaign_id: str
    name: str
    segment_id: str
    segment_name: Optional[str] = None
    message_template: str
    campaign_type: str
    created_by: str
    status: str
    launch_state: str
    target_audience_count: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CommunicationLogEntry(BaseModel):
    id: str
    campaign_id: str
    customer_id: str
    customer_email: str
    customer_name: str
    message_text: str
    status: str
    attempts: int
    max_attempts: int
    created_at: datetime

    model_config = {"from_attributes": True}
