"""Turning raw form input into values the bill mutations accept."""

from __future__ import annotations

import math
import re

# 20.000 / 1.250.000 style thousands grouping
_GROUPED_THOUSANDS = re.compile(r"^\d{1,3}(\.\d{3})+$")


def _normalize_number(text: str) -> str:
    value = text.strip().replace(" ", "")
    for prefix in ("Rp", "rp", "RP"):
        if value.startswith(prefix):
            value = value[len(prefix):]
    if _GROUPED_THOUSANDS.match(value):
        return value.replace(".", "")
    return value.replace(",", ".")


def clean_name(text: str) -> str:
    name = text.strip()
    if not name:
        raise ValueError("Name must not be empty")
    return name


def parse_price(text: str) -> float:
    try:
        price = float(_normalize_number(text))
    except ValueError as exc:
        raise ValueError("Price must be a number") from exc
    if not math.isfinite(price) or price <= 0:
        raise ValueError("Price must be greater than zero")
    return price


def parse_quantity(text: str) -> int:
    value = text.strip()
    if not value:
        return 1
    try:
        quantity = int(value)
    except ValueError as exc:
        raise ValueError("Quantity must be a whole number") from exc
    if quantity < 1:
        raise ValueError("Quantity must be at least 1")
    return quantity


def parse_rate(text: str) -> float:
    """Percent value; blank or unreadable input counts as 0."""
    try:
        rate = float(_normalize_number(text))
    except ValueError:
        return 0.0
    if not math.isfinite(rate) or rate < 0:
        return 0.0
    return rate
