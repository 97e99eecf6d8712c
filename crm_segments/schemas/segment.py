# crm_segments/schemas/segment.py
"""
Request/response schemas for segments.

Rule groups are accepted as raw JSON here and validated by
parse_rule_groups() inside the segment service, so every rule problem is
reported through the same error path.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field

_RULES_EXAMPLE = [
    {
        "id": "group_1",
        "operator": "AND",
        "rules": [
            {"id": "rule_1", "field": "total_spend", "operator": ">", "value": 1000},
            {"id": "rule_2", "field": "status", "operator": "=", "value": "ACTIVE"},
        ],
    }
]


class SegmentCreate(BaseModel):
    name: Optional[str] = Field(None, json_schema_extra={"example": "High Spenders"})
    description: Optional[str] = None
    rule_groups: Optional[List[Any]] = Field(
        None,
        validation_alias=AliasChoices("rule_groups", "rules"),
        json_schema_extra={"example": _RULES_EXAMPLE},
    )


class SegmentUpdate(SegmentCreate):
    pass


class AudiencePreviewRequest(BaseModel):
    rule_groups: Optional[List[Any]] = Field(
        None,
        validation_alias=AliasChoices("rule_groups", "rules"),
        json_schema_extra={"example": _RULES_EXAMPLE},
    )


class Segment(BaseModel):
    segment_id: str
    name: str
    description: Optional[str] = None
    rule_groups: List[Any]
    preview_count: int
    created_by: str
    created_at: datetime
    updated_at: datetime
    # Human-readable rule text per group, e.g. ["Total Spend Greater than ₹1,000"]
    rule_summary: List[List[str]] = Field(default_factory=list)

    model_config = {"from_attributes": True}
