# crm_segments/api/v1/endpoints/customers.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from crm_segments.crud.crud_customer import customer as crud_customer
from crm_segments.db.session import get_db
from crm_segments.schemas.common import DataResponse
from crm_segments.schemas.customer import CustomerSummary

router = APIRouter(tags=["Customers"])


@router.get("/customers", response_model=DataResponse[List[CustomerSummary]])
def list_recent_customers(
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """Most recently synced customers, for the dashboard."""
    customers = crud_customer.get_recent(db, limit=limit)
    return DataResponse(data=[CustomerSummary.model_validate(c) for c in customers])
