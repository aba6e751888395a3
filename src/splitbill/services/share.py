from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from splitbill.db.models import Bill, BillSummary

CURRENCY_PREFIX = "Rp"
DEFAULT_TITLE = "Split Bill"


def format_currency(amount: float) -> str:
    whole = int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return f"{CURRENCY_PREFIX} {whole:,}".replace(",", ".")


def format_quantity(quantity: float) -> str:
    text = f"{quantity:.2f}".rstrip("0").rstrip(".")
    return text or "0"


def format_share_message(bill: Bill, summary: BillSummary) -> str:
    """Plain-text breakdown meant for pasting into a chat."""
    lines = [
        f"🧾 *{bill.title.strip() or DEFAULT_TITLE}*",
        f"Total: {format_currency(summary.grand_total)}",
        "",
    ]
    for share in summary.shares:
        lines.append(f"👤 *{share.participant_name}*: {format_currency(share.total_due)}")
        for portion in share.items_consumed:
            lines.append(f"   - {portion.item_name} ({format_quantity(portion.portion_quantity)}x)")
        lines.append("")
    return "\n".join(lines)
