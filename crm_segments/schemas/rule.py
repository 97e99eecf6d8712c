# crm_segments/schemas/rule.py
"""
Rule model for customer segments.

A segment is an ordered list of rule groups. Groups are OR-ed together;
the rules inside one group are combined with the group's own operator.

Validation happens here, at the parse boundary:
- field must be one of the allowlisted customer attributes
- operator must be one of the supported comparison operators
- ordering operators only apply to numeric fields, text-matching
  operators only to text fields
- numeric fields require a value that parses as a finite number
"""

import json
import math
import uuid
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, List, Union

from pydantic import (
    BaseModel,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from crm_segments.core.exceptions import ValidationError
from crm_segments.utils.templating import format_amount_label


class CustomerField(str, Enum):
    """Customer attributes a rule may target. Nothing else is ever compiled."""

    total_spend = "total_spend"
    total_visits = "total_visits"
    total_orders = "total_orders"
    days_since_last_order = "days_since_last_order"
    status = "status"
    name = "name"
    email = "email"

    @property
    def is_numeric(self) -> bool:
        return self in NUMERIC_FIELDS


NUMERIC_FIELDS = frozenset(
    {
        CustomerField.total_spend,
        CustomerField.total_visits,
        CustomerField.total_orders,
        CustomerField.days_since_last_order,
    }
)

FIELD_LABELS = {
    CustomerField.total_spend: "Total Spend",
    CustomerField.total_visits: "Total Visits",
    CustomerField.total_orders: "Total Orders",
    CustomerField.days_since_last_order: "Days Since Last Order",
    CustomerField.status: "Status",
    CustomerField.name: "Customer Name",
    CustomerField.email: "Email",
}


class RuleOperator(str, Enum):
    gt = ">"
    gte = ">="
    lt = "<"
    lte = "<="
    eq = "="
    ne = "!="
    contains = "contains"
    not_contains = "not_contains"
    starts_with = "starts_with"
    ends_with = "ends_with"


ORDERING_OPERATORS = frozenset(
    {RuleOperator.gt, RuleOperator.gte, RuleOperator.lt, RuleOperator.lte}
)
PATTERN_OPERATORS = frozenset(
    {
        RuleOperator.contains,
        RuleOperator.not_contains,
        RuleOperator.starts_with,
        RuleOperator.ends_with,
    }
)

OPERATOR_LABELS = {
    RuleOperator.gt: "Greater than",
    RuleOperator.gte: "Greater than or equal",
    RuleOperator.lt: "Less than",
    RuleOperator.lte: "Less than or equal",
    RuleOperator.eq: "Equal to",
    RuleOperator.ne: "Not equal to",
    RuleOperator.contains: "Contains",
    RuleOperator.not_contains: "Does not contain",
    RuleOperator.starts_with: "Starts with",
    RuleOperator.ends_with: "Ends with",
}


class GroupOperator(str, Enum):
    AND = "AND"
    OR = "OR"


# Largest decimal exponent a float can carry.
MAX_NUMBER_EXPONENT = 308


def coerce_number(value: Any) -> Union[int, float]:
    """
    Parse a rule value as a finite number.

    Integral values come back as int, everything else as float.
    Raises ValueError for booleans, non-numeric strings, NaN, infinity and
    magnitudes beyond float range.
    """
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, float):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"'{value}' is not a number")
    else:
        raise ValueError(f"{type(value).__name__} is not a number")

    if not number.is_finite():
        raise ValueError(f"'{value}' is not a finite number")
    if number and abs(number.adjusted()) > MAX_NUMBER_EXPONENT:
        raise ValueError("value is out of range")
    if number == number.to_integral_value():
        return int(number)
    result = float(number)
    if math.isinf(result):
        raise ValueError("value is out of range")
    return result


class Rule(BaseModel):
    id: str = Field(default_factory=lambda: f"rule_{uuid.uuid4().hex[:8]}")
    field: CustomerField = Field(..., json_schema_extra={"example": "total_spend"})
    operator: RuleOperator = Field(..., json_schema_extra={"example": ">"})
    value: Union[StrictInt, StrictFloat, StrictStr] = Field(
        ..., json_schema_extra={"example": 1000}
    )

    @model_validator(mode="after")
    def check_operator_and_value(self) -> "Rule":
        if self.operator in PATTERN_OPERATORS and self.field.is_numeric:
            raise ValueError(
                f"Operator '{self.operator.value}' cannot be used with numeric field "
                f"'{self.field.value}'"
            )
        if self.operator in ORDERING_OPERATORS and not self.field.is_numeric:
            raise ValueError(
                f"Operator '{self.operator.value}' requires a numeric field, "
                f"got '{self.field.value}'"
            )

        if self.field.is_numeric:
            try:
                self.value = coerce_number(self.value)
            except ValueError as e:
                raise ValueError(
                    f"Field '{self.field.value}' requires a numeric value: {e}"
                )
        else:
            if not isinstance(self.value, str):
                self.value = str(self.value)
            if "\x00" in self.value:
                raise ValueError("Rule value must not contain NUL characters")
        return self

    def describe(self) -> str:
        """Human-readable rule text, e.g. 'Total Spend Greater than ₹1,000'."""
        value = self.value
        if self.field == CustomerField.total_spend:
            value = format_amount_label(value)
        return f"{FIELD_LABELS[self.field]} {OPERATOR_LABELS[self.operator]} {value}"


class RuleGroup(BaseModel):
    id: str = Field(default_factory=lambda: f"group_{uuid.uuid4().hex[:8]}")
    operator: GroupOperator = GroupOperator.AND
    rules: List[Rule] = Field(default_factory=list)

    @field_validator("operator", mode="before")
    @classmethod
    def normalize_operator(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v


_rule_groups_adapter = TypeAdapter(List[RuleGroup])


def parse_rule_groups(raw: Any) -> List[RuleGroup]:
    """
    Validate rule groups coming from a request body, a query string (JSON
    text) or a stored segment.

    Raises the service ValidationError, with one entry per offending rule.
    """
    if raw is None:
        raise ValidationError("Rules array is required", field="rule_groups")

    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError("Invalid rules format", field="rule_groups")

    if not isinstance(raw, (list, tuple)):
        raise ValidationError("Rules array is required", field="rule_groups")

    try:
        return _rule_groups_adapter.validate_python(list(raw))
    except PydanticValidationError as e:
        errors = [
            {
                "loc": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
            }
            for err in e.errors()
        ]
        raise ValidationError(
            f"Invalid rule configuration: {errors[0]['message']}",
            field="rule_groups",
            errors=errors,
        )


def dump_rule_groups(rule_groups: List[RuleGroup]) -> List[dict]:
    """JSON-ready form used for the segments.rule_groups column."""
    return [group.model_dump(mode="json") for group in rule_groups]
