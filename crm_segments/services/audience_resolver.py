# crm_segments/services/audience_resolver.py
"""
Executes compiled segment predicates against the customer store.

The predicate is always pushed down to the database: structured predicates
go through the ORM query interface, text predicates through a raw SELECT.
Nothing is filtered in Python.
"""

import logging
from typing import List, Sequence

from sqlalchemy import func, text
from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crm_segments.core.exceptions import StoreError, ValidationError
from crm_segments.models.customer import Customer
from crm_segments.schemas.rule import CustomerField
from crm_segments.services.predicate_compiler import (
    Predicate,
    StructuredPredicate,
    TextPredicate,
)

logger = logging.getLogger(__name__)

# Fields needed to personalize a message and write its log row.
DEFAULT_PROJECTION = (
    "customer_id",
    "name",
    "email",
    "total_spend",
    "total_orders",
    "total_visits",
)

SAMPLE_PROJECTION = DEFAULT_PROJECTION + ("status", "days_since_last_order")

# Columns a projection may name: the rule fields plus the identifiers.
PROJECTABLE_COLUMNS = frozenset(
    {"customer_id", "synced_at"} | {f.value for f in CustomerField}
)


def _check_projection(projection: Sequence[str]) -> None:
    unknown = [name for name in projection if name not in PROJECTABLE_COLUMNS]
    if unknown or not projection:
        raise ValidationError(
            f"Invalid projection: {', '.join(unknown) or '(empty)'}", field="projection"
        )


class AudienceResolver:
    """Counts and materializes the customers matching a predicate."""

    def __init__(self, db: Session):
        self.db = db

    @property
    def dialect(self) -> str:
        """Dialect name used when compiling text predicates for this session."""
        return self.db.get_bind().dialect.name

    def count(self, predicate: Predicate) -> int:
        if predicate.matches_nothing:
            return 0

        try:
            if isinstance(predicate, StructuredPredicate):
                result = (
                    self.db.query(func.count(Customer.customer_id))
                    .filter(predicate.clause)
                    .scalar()
                )
            else:
                result = self.db.execute(
                    text(
                        f"SELECT COUNT(*) AS count FROM {Customer.__tablename__} "
                        f"WHERE {predicate.sql}"
                    )
                ).scalar()
        except SQLAlchemyError as e:
            self._fail("count", e)
        return int(result or 0)

    def materialize(
        self, predicate: Predicate, projection: Sequence[str] = DEFAULT_PROJECTION
    ) -> List[Row]:
        """Matching customers, projected and ordered by customer_id."""
        _check_projection(projection)
        if predicate.matches_nothing:
            return []
        return self._select(predicate, projection, order_by="customer_id ASC")

    def sample(self, predicate: Predicate, limit: int = 10, max_limit: int = 100) -> List[Row]:
        """A few matching customers, biggest spenders first."""
        limit = max(1, min(int(limit), max_limit))
        if predicate.matches_nothing:
            return []
        return self._select(
            predicate, SAMPLE_PROJECTION, order_by="total_spend DESC", limit=limit
        )

    def _select(
        self,
        predicate: Predicate,
        projection: Sequence[str],
        *,
        order_by: str,
        limit: int = None,
    ) -> List[Row]:
        order_column, direction = order_by.split()
        try:
            if isinstance(predicate, StructuredPredicate):
                column = getattr(Customer, order_column)
                query = (
                    self.db.query(*(getattr(Customer, name) for name in projection))
                    .filter(predicate.clause)
                    .order_by(column.desc() if direction == "DESC" else column.asc())
                )
                if limit is not None:
                    query = query.limit(limit)
                return query.all()

            if not isinstance(predicate, TextPredicate):
                raise ValidationError(f"Unsupported predicate: {type(predicate).__name__}")
            statement = (
                f"SELECT {', '.join(projection)} FROM {Customer.__tablename__} "
                f"WHERE {predicate.sql} ORDER BY {order_column} {direction}"
            )
            params = {}
            if limit is not None:
                statement += " LIMIT :limit"
                params["limit"] = limit
            return list(self.db.execute(text(statement), params).all())
        except SQLAlchemyError as e:
            self._fail("select", e)

    def _fail(self, operation: str, error: SQLAlchemyError):
        # Leave the session usable for the caller's follow-up writes.
        self.db.rollback()
        logger.error(f"Audience {operation} query failed: {error}", exc_info=True)
        raise StoreError() from error
