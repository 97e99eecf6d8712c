# crm_segments/utils/templating.py
"""
Message personalization for campaign templates.

Supported placeholders:
- {{name}}          customer name, "Customer" when missing
- {{email}}         customer email, empty when missing
- {{total_spend}}   rupee amount with Indian digit grouping, e.g. ₹1,25,000
- {{total_orders}}  integer, 0 when missing
- {{total_visits}}  integer, 0 when missing

Anything else that looks like a placeholder is left in the text untouched.
"""

import re
from collections.abc import Mapping
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, List

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")

CURRENCY_SYMBOL = "₹"


def _group_indian(digits: str) -> str:
    # Last three digits form one group, the rest are grouped in pairs.
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_currency(amount: Any) -> str:
    """
    Format an amount as whole rupees with en-IN grouping.

    >>> format_currency(2500)
    '₹2,500'
    >>> format_currency(1234567.5)
    '₹12,34,568'
    """
    if not amount:
        return f"{CURRENCY_SYMBOL}0"
    rounded = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{_group_indian(str(abs(int(rounded))))}"


def format_amount_label(amount: Any, max_fraction_digits: int = 3) -> str:
    """
    Rupee amount for display labels: en-IN grouping, up to three decimals
    kept, trailing zeros dropped.

    >>> format_amount_label(1500.5)
    '₹1,500.5'
    """
    step = Decimal(1).scaleb(-max_fraction_digits)
    rounded = Decimal(str(amount or 0)).quantize(step, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    whole, _, fraction = f"{abs(rounded):f}".partition(".")
    fraction = fraction.rstrip("0")
    text = _group_indian(whole) + (f".{fraction}" if fraction else "")
    return f"{sign}{CURRENCY_SYMBOL}{text}"


def _value(customer: Any, key: str) -> Any:
    if isinstance(customer, Mapping):
        return customer.get(key)
    return getattr(customer, key, None)


PLACEHOLDERS: Dict[str, Callable[[Any], str]] = {
    "name": lambda c: _value(c, "name") or "Customer",
    "email": lambda c: _value(c, "email") or "",
    "total_spend": lambda c: format_currency(_value(c, "total_spend")),
    "total_orders": lambda c: str(_value(c, "total_orders") or 0),
    "total_visits": lambda c: str(_value(c, "total_visits") or 0),
}


def render(template: str, customer: Any) -> str:
    """Replace every known placeholder in `template` with the customer's data."""

    def substitute(match: re.Match) -> str:
        resolver = PLACEHOLDERS.get(match.group(1))
        if resolver is None:
            return match.group(0)
        return resolver(customer)

    return PLACEHOLDER_PATTERN.sub(substitute, template)


def placeholders(template: str) -> List[str]:
    """Placeholder names used in a template, in order of first appearance."""
    seen: List[str] = []
    for name in PLACEHOLDER_PATTERN.findall(template):
        if name not in seen:
            seen.append(name)
    return seen


def unknown_placeholders(template: str) -> List[str]:
    return [name for name in placeholders(template) if name not in PLACEHOLDERS]
