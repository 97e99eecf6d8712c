from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from crm_segments.models.customer import Customer


def create_customer(
    db: Session,
    customer_id: str,
    *,
    name: Optional[str] = "Test Customer",
    email: Optional[str] = None,
    total_spend=0,
    total_orders: int = 0,
    total_visits: int = 0,
    days_since_last_order: Optional[int] = None,
    status: str = "ACTIVE",
    synced_minutes_ago: int = 0,
) -> Customer:
    """
    Inserts a row into the customer store. Only tests write here.
    """
    customer = Customer(
        customer_id=customer_id,
        name=name,
        email=email if email is not None else f"{customer_id}@example.com",
        total_spend=Decimal(str(total_spend)),
        total_orders=total_orders,
        total_visits=total_visits,
        days_since_last_order=days_since_last_order,
        status=status,
        synced_at=datetime.utcnow() - timedelta(minutes=synced_minutes_ago),
    )
    db.add(customer)
    db.commit()
    return customer


def seed_three_customers(db: Session):
    """Spend 500/1500/2500 with statuses ACTIVE/ACTIVE/INACTIVE."""
    create_customer(db, "c1", name="Asha", total_spend=500, status="ACTIVE")
    create_customer(db, "c2", name="Ravi", total_spend=1500, status="ACTIVE")
    create_customer(db, "c3", name="Meera", total_spend=2500, status="INACTIVE")
