# tests/services/test_audience_resolver.py

from unittest.mock import MagicMock

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from crm_segments.core.exceptions import StoreError, ValidationError
from crm_segments.services.audience_resolver import AudienceResolver
from crm_segments.services.predicate_compiler import compile_structured, compile_text
from tests.utils.customer import create_customer, seed_three_customers
from tests.utils.rules import HIGH_SPEND_ACTIVE, group, rule


def _ids(rows):
    return {row.customer_id for row in rows}


def test_three_customer_scenario(db_session):
    seed_three_customers(db_session)
    resolver = AudienceResolver(db_session)

    rows = resolver.materialize(compile_structured(HIGH_SPEND_ACTIVE))
    count = resolver.count(compile_text(HIGH_SPEND_ACTIVE, dialect=resolver.dialect))

    assert _ids(rows) == {"c2"}
    assert count == 1


def test_empty_group_touches_nothing():
    db = MagicMock()
    resolver = AudienceResolver(db)

    assert resolver.count(compile_text([group()])) == 0
    assert resolver.materialize(compile_structured([group()])) == []
    db.execute.assert_not_called()
    db.query.assert_not_called()


def test_materialize_is_ordered_and_projected(db_session):
    seed_three_customers(db_session)
    resolver = AudienceResolver(db_session)

    rows = resolver.materialize(
        compile_structured([group(rule("total_spend", ">", 0))]),
        projection=("customer_id", "name"),
    )

    assert [row.customer_id for row in rows] == ["c1", "c2", "c3"]
    assert rows[0].name == "Asha"


def test_projection_is_allowlisted(db_session):
    resolver = AudienceResolver(db_session)
    with pytest.raises(ValidationError):
        resolver.materialize(compile_structured(HIGH_SPEND_ACTIVE), projection=("1; --",))


def test_injection_value_is_inert(db_session):
    seed_three_customers(db_session)
    resolver = AudienceResolver(db_session)
    rules = [group(rule("name", "=", "x'; DROP TABLE customers_mv; --"))]

    assert resolver.count(compile_text(rules, dialect=resolver.dialect)) == 0
    assert inspect(db_session.get_bind()).has_table("customers_mv")
    assert resolver.count(compile_text([group(rule("total_spend", ">=", 0))], dialect=resolver.dialect)) == 3


def test_sample_orders_by_spend_and_clamps_limit(db_session):
    seed_three_customers(db_session)
    resolver = AudienceResolver(db_session)
    predicate = compile_structured([group(rule("total_spend", ">", 0))])

    assert [r.customer_id for r in resolver.sample(predicate, limit=10)] == ["c3", "c2", "c1"]
    assert len(resolver.sample(predicate, limit=0)) == 1
    assert len(resolver.sample(predicate, limit=-5)) == 1


def test_store_failure_is_wrapped():
    db = MagicMock()
    db.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
    resolver = AudienceResolver(db)

    with pytest.raises(StoreError) as exc:
        resolver.count(compile_structured(HIGH_SPEND_ACTIVE))

    assert "connection refused" not in exc.value.message
    db.rollback.assert_called_once()


EQUIVALENCE_CASES = [
    [group(rule("total_spend", ">", 1000))],
    [group(rule("total_spend", ">=", "1500.5"))],
    [group(rule("total_orders", "=", 3))],
    [group(rule("total_visits", "!=", 0))],
    [group(rule("days_since_last_order", "<", 30))],
    [group(rule("status", "!=", "INACTIVE"))],
    [group(rule("name", "contains", "SHA"))],
    [group(rule("name", "starts_with", "r"))],
    [group(rule("email", "ends_with", "@shop.in"))],
    [group(rule("name", "not_contains", "a"))],
    [group(rule("name", "contains", "50%"))],
    [group(rule("name", "contains", "a_b"))],
    [
        group(
            rule("status", "=", "ACTIVE", "r1"),
            rule("total_spend", "<", 1000, "r2"),
            operator="OR",
            group_id="g1",
        ),
        group(rule("name", "=", "O'Brien"), group_id="g2"),
    ],
]


@pytest.mark.parametrize("rules", EQUIVALENCE_CASES)
def test_structured_and_text_predicates_agree(db_session, rules):
    create_customer(db_session, "a1", name="Asha", email="asha@shop.in", total_spend=2500,
                    total_orders=3, total_visits=5, days_since_last_order=10)
    create_customer(db_session, "a2", name="Ravi", total_spend=1500.5, total_orders=1,
                    days_since_last_order=45, status="PENDING")
    create_customer(db_session, "a3", name="O'Brien", total_spend=200, status="INACTIVE")
    create_customer(db_session, "a4", name="50% Club", total_spend=999.99, total_visits=2)
    create_customer(db_session, "a5", name="axb", email="AXB@SHOP.IN", total_spend=1000)
    resolver = AudienceResolver(db_session)

    structured = compile_structured(rules)
    text_predicate = compile_text(rules, dialect=resolver.dialect)

    structured_ids = _ids(resolver.materialize(structured))
    text_ids = _ids(resolver.materialize(text_predicate))

    assert structured_ids == text_ids
    assert resolver.count(structured) == resolver.count(text_predicate) == len(text_ids)
