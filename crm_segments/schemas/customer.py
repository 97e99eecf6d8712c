# crm_segments/schemas/customer.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class CustomerSummary(BaseModel):
    customer_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    total_spend: float = 0
    total_visits: int = 0
    total_orders: Optional[int] = None
    status: Optional[str] = None
    days_since_last_order: Optional[int] = None
    synced_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
