# crm_segments/crud/crud_customer.py
from typing import List

from sqlalchemy.orm import Session

from crm_segments.models.customer import Customer


class CRUDCustomer:
    """Read access to the customer store outside of segment targeting."""

    def get_recent(self, db: Session, *, limit: int = 100) -> List[Customer]:
        """Most recently synced customers first (dashboard feed)."""
        return (
            db.query(Customer)
            .order_by(Customer.synced_at.desc())
            .limit(limit)
            .all()
        )


customer = CRUDCustomer()
