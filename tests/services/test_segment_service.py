# tests/services/test_segment_service.py

from unittest.mock import MagicMock

import pytest

from crm_segments.core.exceptions import (
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from crm_segments.crud import crud_campaign, crud_segment
from crm_segments.services.segment_service import SegmentService
from tests.utils.customer import seed_three_customers
from tests.utils.rules import HIGH_SPEND_ACTIVE, group, rule


def test_create_segment_stores_preview_count(db_session):
    seed_three_customers(db_session)
    service = SegmentService(db_session)

    segment = service.create(
        name="  High Spenders ",
        description="",
        rule_groups=HIGH_SPEND_ACTIVE,
        created_by="marketer@example.com",
    )

    assert segment.segment_id.startswith("seg_")
    assert segment.name == "High Spenders"
    assert segment.description is None
    assert segment.preview_count == 1
    assert segment.created_by == "marketer@example.com"
    assert segment.rule_groups[0]["rules"][0]["value"] == 1000


def test_create_requires_rule_groups_before_any_query():
    db = MagicMock()
    service = SegmentService(db)

    with pytest.raises(ValidationError) as exc:
        service.create(name="Empty", rule_groups=[], created_by="anonymous")

    assert exc.value.message == "At least one rule group is required"
    db.execute.assert_not_called()
    db.add.assert_not_called()


def test_create_requires_name():
    service = SegmentService(MagicMock())
    with pytest.raises(ValidationError) as exc:
        service.create(name="   ", rule_groups=HIGH_SPEND_ACTIVE, created_by="anonymous")
    assert exc.value.message == "Segment name is required"


def test_disallowed_field_never_reaches_the_store():
    db = MagicMock()
    service = SegmentService(db)

    with pytest.raises(ValidationError):
        service.preview([group(rule("password", "=", "hunter2"))])

    db.execute.assert_not_called()
    db.query.assert_not_called()


def test_preview_failure_still_creates_segment(db_session, monkeypatch):
    service = SegmentService(db_session)
    monkeypatch.setattr(service.resolver, "count", MagicMock(side_effect=StoreError()))

    segment = service.create(
        name="Flaky", rule_groups=HIGH_SPEND_ACTIVE, created_by="anonymous"
    )

    assert segment.preview_count == 0
    assert crud_segment.segment.get(db_session, segment.segment_id) is not None


def test_preview_and_sample(db_session):
    seed_three_customers(db_session)
    service = SegmentService(db_session)
    rules = [group(rule("total_spend", ">=", 1000))]

    assert service.preview(rules) == 2
    assert service.preview([]) == 0
    assert [c.customer_id for c in service.sample(rules, limit=1)] == ["c3"]


def test_update_recomputes_preview_count(db_session):
    seed_three_customers(db_session)
    service = SegmentService(db_session)
    segment = service.create(name="All", rule_groups=HIGH_SPEND_ACTIVE, created_by="a")

    updated = service.update(
        segment.segment_id,
        name="Active",
        description="Everyone active",
        rule_groups=[group(rule("status", "=", "ACTIVE"))],
    )

    assert updated.name == "Active"
    assert updated.description == "Everyone active"
    assert updated.preview_count == 2


def test_update_validates_before_lookup(db_session):
    service = SegmentService(db_session)

    with pytest.raises(ValidationError):
        service.update("seg_missing", name="X", rule_groups=[])

    with pytest.raises(NotFoundError):
        service.update("seg_missing", name="X", rule_groups=HIGH_SPEND_ACTIVE)


def test_delete_refused_while_campaigns_reference_segment(db_session):
    service = SegmentService(db_session)
    segment = service.create(name="Used", rule_groups=HIGH_SPEND_ACTIVE, created_by="a")
    campaign = crud_campaign.campaign.create_for_segment(
        db_session,
        name="Diwali",
        segment_id=segment.segment_id,
        message_template="Hi {{name}}",
        campaign_type="PROMOTIONAL",
        created_by="a",
    )

    with pytest.raises(ConflictError) as exc:
        service.delete(segment.segment_id)

    assert exc.value.status_code == 409
    assert exc.value.message == "Cannot delete segment. It is being used by 1 campaign(s)"
    assert exc.value.campaigns == [{"campaign_id": campaign.campaign_id, "name": "Diwali"}]
    assert service.get(segment.segment_id).name == "Used"


def test_delete_unused_segment(db_session):
    service = SegmentService(db_session)
    segment = service.create(name="Gone", rule_groups=HIGH_SPEND_ACTIVE, created_by="a")

    service.delete(segment.segment_id)

    with pytest.raises(NotFoundError):
        service.get(segment.segment_id)
    with pytest.raises(NotFoundError):
        service.delete(segment.segment_id)


def test_list_returns_all_segments(db_session):
    service = SegmentService(db_session)
    service.create(name="One", rule_groups=HIGH_SPEND_ACTIVE, created_by="a")
    service.create(name="Two", rule_groups=HIGH_SPEND_ACTIVE, created_by="a")

    assert {s.name for s in service.list()} == {"One", "Two"}
