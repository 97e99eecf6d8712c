# crm_segments/services/segment_service.py
"""
Segment management: CRUD over segments with a cached audience preview.

preview_count is recomputed on every create/update from the textual
predicate. It is a display hint only; campaigns always resolve their
audience live.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from crm_segments.core.exceptions import (
    ConflictError,
    NotFoundError,
    PreviewComputationError,
    StoreError,
    ValidationError,
)
from crm_segments.crud import crud_campaign, crud_segment
from crm_segments.models.segment import Segment
from crm_segments.schemas.rule import RuleGroup, dump_rule_groups, parse_rule_groups
from crm_segments.services.audience_resolver import AudienceResolver
from crm_segments.services.predicate_compiler import compile_structured, compile_text

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    if not name or not name.strip():
        raise ValidationError("Segment name is required", field="name")
    return name.strip()


def _clean_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    return description.strip() or None


def _require_rule_groups(rule_groups: Any) -> List[RuleGroup]:
    if not rule_groups:
        raise ValidationError("At least one rule group is required", field="rule_groups")
    return parse_rule_groups(rule_groups)


class SegmentService:
    def __init__(self, db: Session):
        self.db = db
        self.resolver = AudienceResolver(db)

    # ------------------------------------------------------------------ #
    # Preview
    # ------------------------------------------------------------------ #

    def _compute_preview_count(self, rule_groups: List[RuleGroup]) -> int:
        predicate = compile_text(rule_groups, dialect=self.resolver.dialect)
        try:
            return self.resolver.count(predicate)
        except StoreError as e:
            raise PreviewComputationError() from e

    def _preview_count_or_zero(self, rule_groups: List[RuleGroup]) -> int:
        try:
            return self._compute_preview_count(rule_groups)
        except PreviewComputationError:
            logger.warning("Error calculating preview count", exc_info=True)
            return 0

    def preview(self, rule_groups: Any) -> int:
        """Ad-hoc audience size for rules that are not saved yet."""
        groups = parse_rule_groups(rule_groups)
        if not groups:
            return 0
        return self.resolver.count(compile_text(groups, dialect=self.resolver.dialect))

    def sample(self, rule_groups: Any, limit: int = 10, max_limit: int = 100) -> list:
        """A handful of matching customers for the segment builder."""
        groups = parse_rule_groups(rule_groups)
        if not groups:
            return []
        return self.resolver.sample(
            compile_structured(groups), limit=limit, max_limit=max_limit
        )

    # ------------------------------------------------------------------ #
    # CRUD
    # ------------------------------------------------------------------ #

    def create(
        self,
        *,
        name: Optional[str],
        description: Optional[str] = None,
        rule_groups: Any,
        created_by: str,
    ) -> Segment:
        clean_name = _clean_name(name)
        groups = _require_rule_groups(rule_groups)

        preview_count = self._preview_count_or_zero(groups)

        segment = crud_segment.segment.create_with_owner(
            self.db,
            name=clean_name,
            description=_clean_description(description),
            rule_groups=dump_rule_groups(groups),
            preview_count=preview_count,
            created_by=created_by,
        )
        logger.info(
            f"Segment {segment.segment_id} created by {created_by} "
            f"(preview_count={preview_count})"
        )
        return segment

    def update(
        self,
        segment_id: str,
        *,
        name: Optional[str],
        description: Optional[str] = None,
        rule_groups: Any,
    ) -> Segment:
        clean_name = _clean_name(name)
        groups = _require_rule_groups(rule_groups)

        existing = self.get(segment_id)
        preview_count = self._preview_count_or_zero(groups)

        return crud_segment.segment.replace(
            self.db,
            db_obj=existing,
            name=clean_name,
            description=_clean_description(description),
            rule_groups=dump_rule_groups(groups),
            preview_count=preview_count,
        )

    def delete(self, segment_id: str) -> None:
        existing = self.get(segment_id)

        campaigns = crud_campaign.campaign.get_by_segment(self.db, segment_id)
        if campaigns:
            raise ConflictError(
                f"Cannot delete segment. It is being used by {len(campaigns)} campaign(s)",
                campaigns=[
                    {"campaign_id": c.campaign_id, "name": c.name} for c in campaigns
                ],
            )

        crud_segment.segment.remove(self.db, id=existing.segment_id)
        logger.info(f"Segment {segment_id} deleted")

    def get(self, segment_id: str) -> Segment:
        segment = crud_segment.segment.get(self.db, segment_id)
        if segment is None:
            raise NotFoundError("Segment", segment_id)
        return segment

    def list(self) -> List[Segment]:
        return crud_segment.segment.get_multi_newest_first(self.db)
