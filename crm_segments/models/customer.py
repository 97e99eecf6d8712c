# crm_segments/models/customer.py
"""
Customer model - the read-only customer store that segments target.

Backed by the `customers_mv` materialized view maintained by the sync
pipeline; this service never writes to it outside of test fixtures.
"""

from sqlalchemy import Column, String, Integer, Numeric, DateTime, text
from crm_segments.db.base_class import Base


class Customer(Base):
    __tablename__ = "customers_mv"

    customer_id = Column(String, primary_key=True)
    name = Column(String, nullable=True)
    email = Column(String, nullable=True, index=True)

    # Aggregates used for targeting
    total_spend = Column(Numeric(12, 2), nullable=False, server_default=text("0"))
    total_orders = Column(Integer, nullable=False, server_default=text("0"))
    total_visits = Column(Integer, nullable=False, server_default=text("0"))
    days_since_last_order = Column(Integer, nullable=True)

    status = Column(String(20), nullable=False, server_default=text("'ACTIVE'"))
    # Options: 'ACTIVE', 'INACTIVE', 'PENDING'

    synced_at = Column(DateTime(timezone=True), nullable=True)
