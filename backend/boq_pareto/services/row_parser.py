"""
Row Parser — normalizes one raw spreadsheet row into a canonical LineItem.

Column headers vary between BoQ templates, so each canonical field is
resolved through the ordered alias list in ``config.COLUMN_ALIASES``.
Malformed cells are not errors: unparseable numbers become 0 and rows
without a code, a description, or a positive total are dropped.
"""
import logging
import math
import re
from typing import Any, Mapping, Optional

from boq_pareto.config import COLUMN_ALIASES
from boq_pareto.models.boq_models import LineItem

logger = logging.getLogger("boq-pareto-parser")

# Leading numeric prefix, e.g. "12.5 m3" → 12.5, "1e3" → 1000
_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def resolve_field(row: Mapping[str, Any], field: str) -> Any:
    """Return the first non-blank value among the field's aliases, or None."""
    for alias in COLUMN_ALIASES[field]:
        value = row.get(alias)
        if not _is_blank(value):
            return value
    return None


def parse_number(value: Any) -> float:
    """Lenient float parse. Thousands separators are stripped; anything unparseable is 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "")
        match = _NUMBER_PREFIX.match(text)
        if not match:
            return 0.0
        number = float(match.group(0))
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _text(value: Any) -> str:
    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        # Numeric cells such as code 3 arrive as 3.0 from some readers
        return str(int(value))
    return str(value).strip()


class RowParser:
    """Stateless row → LineItem transform."""

    def parse(self, row: Mapping[str, Any]) -> Optional[LineItem]:
        """Return a LineItem, or None when the row is rejected."""
        item_code = _text(resolve_field(row, "item_code"))
        description = _text(resolve_field(row, "description"))

        quantity = parse_number(resolve_field(row, "quantity"))
        if quantity < 0:
            quantity = 0.0
        unit_rate = parse_number(resolve_field(row, "unit_rate"))
        unit = _text(resolve_field(row, "unit")) or None

        total_cost = parse_number(resolve_field(row, "total_cost"))
        if not total_cost:
            total_cost = quantity * unit_rate

        if not item_code or not description or total_cost <= 0:
            return None

        return LineItem(
            item_code=item_code,
            description=description,
            quantity=quantity,
            unit=unit,
            unit_rate=unit_rate,
            total_cost=total_cost,
        )

    def parse_all(self, rows) -> tuple[list[LineItem], int]:
        """Parse every row in order. Returns (accepted items, rejected row count)."""
        items: list[LineItem] = []
        rejected = 0
        for row in rows:
            item = self.parse(row)
            if item is None:
                rejected += 1
                continue
            items.append(item)
        if rejected:
            logger.debug(f"Row parser dropped {rejected} of {rejected + len(items)} rows")
        return items, rejected
