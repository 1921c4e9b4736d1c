"""
Per-item field resolution.

Walks a category's fields in order and works out how much each one adds to
the item amount:

  - calculated fields evaluate their formula over `depends_on` values
  - {value, unit_cost} pairs contribute value x unit_cost
  - numeric values contribute themselves
  - anything else contributes nothing

A missing value contributes 0. Required-field checks belong to validation,
which always runs first.
"""

import logging
import math
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from .exceptions import FormulaEvaluationError
from .expression import evaluate
from .schemas import FieldKind, TemplateCategory, TemplateField

logger = logging.getLogger(__name__)

# Strategy hook for formulas with domain-specific pricing.
# Returns the field value, or None to fall back to generic evaluation.
FormulaHandler = Callable[[TemplateField, Dict[str, Any]], Optional[float]]


# Audit-trail entry holding the strategy multipliers applied to an item
ADJUSTMENTS_KEY = "_adjustments"


class ResolvedItem(NamedTuple):
    amount: float
    calculations: Dict[str, Any]
    warnings: List[str]


def to_token(name: str) -> str:
    """Field label -> formula token (lower-case, whitespace to underscores)."""
    return "_".join(str(name).lower().split())


def is_empty(value) -> bool:
    """None, blank strings and empty containers count as not filled in. Zero is a value."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, dict, tuple)):
        return len(value) == 0
    return False


def parse_number(value) -> Optional[float]:
    """Parse a scalar into a finite float. Returns None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def unit_cost_pair(value) -> Optional[Dict[str, float]]:
    """Recognise {value, unit_cost} (or unitCost) objects and price them."""
    if not isinstance(value, dict) or "value" not in value:
        return None
    if "unit_cost" in value:
        raw_cost = value["unit_cost"]
    elif "unitCost" in value:
        raw_cost = value["unitCost"]
    else:
        return None
    quantity = parse_number(value["value"]) or 0.0
    unit_cost = parse_number(raw_cost) or 0.0
    return {"value": quantity, "unit_cost": unit_cost, "total": quantity * unit_cost}


def numeric_value(value) -> float:
    """Best-effort numeric reading of a raw or computed value; 0.0 when none."""
    pair = unit_cost_pair(value)
    if pair is not None:
        return pair["total"]
    if isinstance(value, dict):
        return parse_number(value.get("total")) or 0.0
    return parse_number(value) or 0.0


def lookup_raw(field_values: Dict[str, Any], field: TemplateField):
    """Submitted value for a field, keyed by label, id or formula token."""
    for key in (field.label, field.id, field.name):
        if key in field_values and not is_empty(field_values[key]):
            return field_values[key]
    return None


def lookup_number(field_values: Dict[str, Any], *keys: str, default: float = 0.0) -> float:
    """First non-empty numeric value among the given keys."""
    for key in keys:
        value = field_values.get(key)
        if not is_empty(value):
            number = numeric_value(value)
            if number:
                return number
    return default


def _find_field(category: TemplateCategory, ref: str) -> Optional[TemplateField]:
    for field in category.fields:
        if ref in (field.label, field.id, field.name):
            return field
    return None


def formula_variables(
    field: TemplateField,
    category: TemplateCategory,
    field_values: Dict[str, Any],
    calculations: Dict[str, Any],
) -> Dict[str, float]:
    """
    Build the variable map for a calculated field. Each `depends_on` entry is
    read from the raw values first, then from results already computed for
    this item. Unresolvable entries become 0.
    """
    variables: Dict[str, float] = {}
    for dependency in field.calculation.depends_on:
        target = _find_field(category, dependency)

        raw = field_values.get(dependency)
        if is_empty(raw) and target is not None:
            raw = lookup_raw(field_values, target)
        if is_empty(raw):
            raw = calculations.get(dependency)
            if raw is None and target is not None:
                raw = calculations.get(target.label)

        value = numeric_value(raw)
        variables[to_token(dependency)] = value
        if target is not None:
            variables.setdefault(target.name, value)
    return variables


def resolve_item(
    category: TemplateCategory,
    field_values: Dict[str, Any],
    formula_handler: Optional[FormulaHandler] = None,
) -> ResolvedItem:
    """
    Resolve one item's fields into (amount, calculations, warnings).

    `calculations` is the audit trail: label -> number, or
    {value, unit_cost, total} for unit-cost pairs. Summing its numeric leaves
    (using `total` for pairs) gives back `amount`.
    """
    amount = 0.0
    calculations: Dict[str, Any] = {}
    warnings: List[str] = []

    for field in category.fields:
        if field.is_calculated:
            value = formula_handler(field, field_values) if formula_handler else None
            if value is None:
                variables = formula_variables(field, category, field_values, calculations)
                try:
                    value = evaluate(field.calculation.formula, variables)
                except FormulaEvaluationError as e:
                    logger.warning(
                        "Field %r formula %r failed: %s",
                        field.label, field.calculation.formula, e,
                    )
                    warnings.append(
                        f'Formula for field "{field.label}" in category '
                        f'"{category.name}" could not be evaluated ({e}); using 0.'
                    )
                    value = 0.0
            calculations[field.label] = value
            amount += value
            continue

        raw = lookup_raw(field_values, field)
        if raw is None:
            continue

        pair = unit_cost_pair(raw)
        if pair is not None:
            calculations[field.label] = pair
            amount += pair["total"]
            continue

        number = parse_number(raw)
        if number is not None:
            calculations[field.label] = number
            amount += number
        elif field.kind == FieldKind.NUMBER:
            logger.debug("Field %r has non-numeric value %r, skipped", field.label, raw)

    return ResolvedItem(amount, calculations, warnings)


def audit_amount(calculations: Dict[str, Any]) -> float:
    """
    Recompute an item amount from its audit trail: the sum of field entries
    (the `total` of unit-cost pairs) times every factor under ADJUSTMENTS_KEY.
    """
    amount = 0.0
    for label, value in calculations.items():
        if label == ADJUSTMENTS_KEY:
            continue
        amount += value["total"] if isinstance(value, dict) else value
    for factor in calculations.get(ADJUSTMENTS_KEY, {}).values():
        amount *= factor
    return amount
