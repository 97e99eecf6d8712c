# crm_segments/services/predicate_compiler.py
"""
Compiles segment rule groups into executable customer-store predicates.

Rule groups are first turned into one small expression tree:

    AllOf(children) | AnyOf(children) | Compare(field, op, value) | MatchNothing

Two renderers then walk that tree:
- render_structured() builds a SQLAlchemy expression against Customer
  (used with the ORM query interface)
- render_text() builds a raw SQL boolean expression string (used with
  text() statements)

Both renderers dispatch through a closed table keyed by RuleOperator and
raise ValidationError for anything missing from it.

Empty input always means "match nothing": a group with no rules and a rule
group list with no groups both compile to MatchNothing.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Sequence, Tuple, Union

from sqlalchemy import and_, false, not_, or_
from sqlalchemy.sql.elements import ColumnElement

from crm_segments.core.exceptions import ValidationError
from crm_segments.models.customer import Customer
from crm_segments.schemas.rule import (
    CustomerField,
    GroupOperator,
    RuleGroup,
    RuleOperator,
    coerce_number,
    parse_rule_groups,
)

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"

# ------------------------------------------------------------------ #
# Expression tree
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class Compare:
    field: CustomerField
    op: RuleOperator
    value: Union[int, float, str]

    def __post_init__(self):
        # The only way to name a column is through the validated enum.
        if not isinstance(self.field, CustomerField):
            raise ValidationError(f"Invalid field: {self.field}", field="field")
        if not isinstance(self.op, RuleOperator):
            raise ValidationError(f"Invalid operator: {self.op}", field="operator")


@dataclass(frozen=True)
class AllOf:
    children: Tuple["Expression", ...]


@dataclass(frozen=True)
class AnyOf:
    children: Tuple["Expression", ...]


@dataclass(frozen=True)
class MatchNothing:
    pass


Expression = Union[Compare, AllOf, AnyOf, MatchNothing]

MATCH_NOTHING = MatchNothing()


def _group_expression(group: RuleGroup) -> Expression:
    if not group.rules:
        return MATCH_NOTHING

    comparisons = tuple(
        Compare(field=rule.field, op=rule.operator, value=rule.value)
        for rule in group.rules
    )
    if len(comparisons) == 1:
        return comparisons[0]
    if group.operator == GroupOperator.OR:
        return AnyOf(comparisons)
    return AllOf(comparisons)


def build_expression(rule_groups: Sequence[Union[RuleGroup, dict]]) -> Expression:
    """
    Build the expression tree for a segment's rule groups (OR-ed together).

    Accepts validated RuleGroup models or raw dicts; raw input is validated
    first, so an unknown field fails here before any store is touched.
    """
    groups = parse_rule_groups(rule_groups)

    branches = tuple(
        expr
        for expr in (_group_expression(group) for group in groups)
        if not isinstance(expr, MatchNothing)
    )
    if not branches:
        return MATCH_NOTHING
    if len(branches) == 1:
        return branches[0]
    return AnyOf(branches)


# ------------------------------------------------------------------ #
# Shared helpers
# ------------------------------------------------------------------ #


def _numeric(value: Any) -> Union[int, float]:
    try:
        return coerce_number(value)
    except ValueError as e:
        raise ValidationError(f"Expected a numeric value: {e}", field="value")


def _like_escape(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def like_pattern(op: RuleOperator, value: Any) -> str:
    """LIKE pattern for a text-matching operator, wildcards in value escaped."""
    escaped = _like_escape(str(value))
    if op == RuleOperator.starts_with:
        return f"{escaped}%"
    if op == RuleOperator.ends_with:
        return f"%{escaped}"
    return f"%{escaped}%"


def _comparison_value(node: Compare) -> Union[int, float, str]:
    if node.field.is_numeric:
        return _numeric(node.value)
    return str(node.value)


# ------------------------------------------------------------------ #
# Structured renderer (SQLAlchemy expressions)
# ------------------------------------------------------------------ #

StructuredBuilder = Callable[[Any, Compare], ColumnElement]

STRUCTURED_OPERATORS: Dict[RuleOperator, StructuredBuilder] = {
    RuleOperator.gt: lambda col, n: col > _numeric(n.value),
    RuleOperator.gte: lambda col, n: col >= _numeric(n.value),
    RuleOperator.lt: lambda col, n: col < _numeric(n.value),
    RuleOperator.lte: lambda col, n: col <= _numeric(n.value),
    RuleOperator.eq: lambda col, n: col == _comparison_value(n),
    RuleOperator.ne: lambda col, n: col != _comparison_value(n),
    RuleOperator.contains: lambda col, n: col.ilike(
        like_pattern(n.op, n.value), escape=LIKE_ESCAPE
    ),
    RuleOperator.not_contains: lambda col, n: not_(
        col.ilike(like_pattern(n.op, n.value), escape=LIKE_ESCAPE)
    ),
    RuleOperator.starts_with: lambda col, n: col.ilike(
        like_pattern(n.op, n.value), escape=LIKE_ESCAPE
    ),
    RuleOperator.ends_with: lambda col, n: col.ilike(
        like_pattern(n.op, n.value), escape=LIKE_ESCAPE
    ),
}


def render_structured(expr: Expression) -> ColumnElement:
    if isinstance(expr, MatchNothing):
        return false()
    if isinstance(expr, AllOf):
        return and_(*(render_structured(child) for child in expr.children))
    if isinstance(expr, AnyOf):
        return or_(*(render_structured(child) for child in expr.children))
    if isinstance(expr, Compare):
        builder = STRUCTURED_OPERATORS.get(expr.op)
        if builder is None:
            raise ValidationError(f"Unsupported operator: {expr.op}", field="operator")
        column = getattr(Customer, expr.field.value)
        return builder(column, expr)
    raise ValidationError(f"Unsupported expression: {type(expr).__name__}")


# ------------------------------------------------------------------ #
# Textual renderer (raw SQL predicate)
# ------------------------------------------------------------------ #


def quote_literal(value: str) -> str:
    """Single-quoted SQL string literal with embedded quotes doubled."""
    if "\x00" in value:
        raise ValidationError("Rule value must not contain NUL characters", field="value")
    return "'" + value.replace("'", "''") + "'"


def numeric_literal(value: Any) -> str:
    """Unquoted SQL numeric literal; only produced from a parsed number."""
    number = _numeric(value)
    return str(number) if isinstance(number, int) else repr(number)


def _text_value(node: Compare) -> str:
    if node.field.is_numeric:
        return numeric_literal(node.value)
    return quote_literal(str(node.value))


def _text_like(node: Compare, dialect: str, negate: bool = False) -> str:
    column = node.field.value
    pattern = quote_literal(like_pattern(node.op, node.value))
    escape = f"ESCAPE {quote_literal(LIKE_ESCAPE)}"
    if dialect == "postgresql":
        keyword = "NOT ILIKE" if negate else "ILIKE"
        return f"{column} {keyword} {pattern} {escape}"
    keyword = "NOT LIKE" if negate else "LIKE"
    return f"LOWER({column}) {keyword} LOWER({pattern}) {escape}"


TextBuilder = Callable[[Compare, str], str]

TEXT_OPERATORS: Dict[RuleOperator, TextBuilder] = {
    RuleOperator.gt: lambda n, d: f"{n.field.value} > {numeric_literal(n.value)}",
    RuleOperator.gte: lambda n, d: f"{n.field.value} >= {numeric_literal(n.value)}",
    RuleOperator.lt: lambda n, d: f"{n.field.value} < {numeric_literal(n.value)}",
    RuleOperator.lte: lambda n, d: f"{n.field.value} <= {numeric_literal(n.value)}",
    RuleOperator.eq: lambda n, d: f"{n.field.value} = {_text_value(n)}",
    RuleOperator.ne: lambda n, d: f"{n.field.value} != {_text_value(n)}",
    RuleOperator.contains: lambda n, d: _text_like(n, d),
    RuleOperator.not_contains: lambda n, d: _text_like(n, d, negate=True),
    RuleOperator.starts_with: lambda n, d: _text_like(n, d),
    RuleOperator.ends_with: lambda n, d: _text_like(n, d),
}


def render_text(expr: Expression, dialect: str = "postgresql") -> str:
    if isinstance(expr, MatchNothing):
        return "1=0"
    if isinstance(expr, AllOf):
        return "(" + " AND ".join(render_text(c, dialect) for c in expr.children) + ")"
    if isinstance(expr, AnyOf):
        return "(" + " OR ".join(render_text(c, dialect) for c in expr.children) + ")"
    if isinstance(expr, Compare):
        builder = TEXT_OPERATORS.get(expr.op)
        if builder is None:
            raise ValidationError(f"Unsupported operator: {expr.op}", field="operator")
        return f"({builder(expr, dialect)})"
    raise ValidationError(f"Unsupported expression: {type(expr).__name__}")


# ------------------------------------------------------------------ #
# Compiled predicates
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class StructuredPredicate:
    clause: ColumnElement
    matches_nothing: bool


@dataclass(frozen=True)
class TextPredicate:
    sql: str
    matches_nothing: bool


Predicate = Union[StructuredPredicate, TextPredicate]


def compile_structured(rule_groups: Sequence[Union[RuleGroup, dict]]) -> StructuredPredicate:
    expr = build_expression(rule_groups)
    return StructuredPredicate(
        clause=render_structured(expr),
        matches_nothing=isinstance(expr, MatchNothing),
    )


def compile_text(
    rule_groups: Sequence[Union[RuleGroup, dict]], dialect: str = "postgresql"
) -> TextPredicate:
    expr = build_expression(rule_groups)
    sql = render_text(expr, dialect)
    logger.debug("Compiled text predicate: %s", sql)
    return TextPredicate(sql=sql, matches_nothing=isinstance(expr, MatchNothing))
