# tests/test_templating.py

from types import SimpleNamespace

from crm_segments.utils.templating import (
    format_amount_label,
    format_currency,
    placeholders,
    render,
    unknown_placeholders,
)


def test_render_known_placeholders():
    customer = {"name": "Asha", "total_spend": 2500, "total_orders": 4}

    message = render("Hi {{name}}, you spent {{total_spend}} over {{total_orders}} orders", customer)

    assert message == "Hi Asha, you spent ₹2,500 over 4 orders"


def test_render_defaults_for_missing_data():
    customer = SimpleNamespace(name=None, email=None, total_spend=None, total_visits=None)

    message = render("{{name}}|{{email}}|{{total_spend}}|{{total_visits}}", customer)

    assert message == "Customer||₹0|0"


def test_every_occurrence_is_replaced():
    template = "{{name}} and {{name}} ({{total_spend}}/{{total_spend}})"

    message = render(template, {"name": "Asha", "total_spend": 2500})

    assert message == "Asha and Asha (₹2,500/₹2,500)"


def test_missing_key_in_mapping_uses_default():
    assert render("{{name}}", {}) == "Customer"
    assert render("{{total_orders}} orders, {{total_spend}}", {}) == "0 orders, ₹0"


def test_unknown_placeholders_are_left_verbatim():
    assert render("Hello {{nickname}}!", {"name": "Ravi"}) == "Hello {{nickname}}!"


def test_template_without_placeholders_is_unchanged():
    assert render("Flat 20% off today", {"name": "Ravi"}) == "Flat 20% off today"


def test_format_currency_uses_indian_grouping():
    assert format_currency(0) == "₹0"
    assert format_currency(999) == "₹999"
    assert format_currency(100000) == "₹1,00,000"
    assert format_currency(1234567.5) == "₹12,34,568"
    assert format_currency("1500.00") == "₹1,500"


def test_placeholder_listing():
    template = "{{name}} {{coupon}} {{name}} {{total_spend}}"

    assert placeholders(template) == ["name", "coupon", "total_spend"]
    assert unknown_placeholders(template) == ["coupon"]


def test_amount_label_keeps_decimals():
    assert format_amount_label(1500.5) == "₹1,500.5"
    assert format_amount_label(125000) == "₹1,25,000"
    assert format_amount_label("99.1239") == "₹99.124"
    assert format_amount_label(0) == "₹0"
