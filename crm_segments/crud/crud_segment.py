# crm_segments/crud/crud_segment.py
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from .base import CRUDBase
from crm_segments.models.segment import Segment
from crm_segments.schemas.segment import SegmentCreate, SegmentUpdate


class CRUDSegment(CRUDBase[Segment, SegmentCreate, SegmentUpdate]):

    def create_with_owner(
        self,
        db: Session,
        *,
        name: str,
        description: Optional[str],
        rule_groups: List[dict],
        preview_count: int,
        created_by: str,
    ) -> Segment:
        return self.create(
            db,
            obj_in={
                "name": name,
                "description": description,
                "rule_groups": rule_groups,
                "preview_count": preview_count,
                "created_by": created_by,
            },
        )

    def get_multi_newest_first(self, db: Session) -> List[Segment]:
        return db.query(self.model).order_by(self.model.created_at.desc()).all()

    def replace(
        self,
        db: Session,
        *,
        db_obj: Segment,
        name: str,
        description: Optional[str],
        rule_groups: List[Any],
        preview_count: int,
    ) -> Segment:
        return self.update(
            db,
            db_obj=db_obj,
            obj_in={
                "name": name,
                "description": description,
                "rule_groups": rule_groups,
                "preview_count": preview_count,
            },
        )


segment = CRUDSegment(Segment, id_field="segment_id")
