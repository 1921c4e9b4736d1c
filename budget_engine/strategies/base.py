"""
Abstract base class for all pricing strategies.

Input: TemplateView + submitted items (+ CalculationContext for calculate)
Output: CalculationResult / ValidationResult

The per-item loop and validation skeleton live here. Subclasses decide how
item amounts are adjusted and how the grand total is taxed, discounted and
marked up.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..field_resolver import (
    ADJUSTMENTS_KEY, FormulaHandler, is_empty, lookup_raw, parse_number, resolve_item,
    unit_cost_pair,
)
from ..schemas import (
    BudgetItemIn, CalculatedItem, CalculationContext, CalculationResult,
    FieldKind, TemplateCategory, TemplateField, TemplateView, ValidationResult,
)

logger = logging.getLogger(__name__)


class BaseStrategy(ABC):
    """All pricing strategies inherit from this."""

    type: str = ""

    # --- Calculation ---

    def calculate(self, template: TemplateView, items: List[BudgetItemIn],
                  context: CalculationContext) -> CalculationResult:
        calculated_items: List[CalculatedItem] = []
        category_totals: Dict[str, float] = {}
        warnings: List[str] = []
        grand_total = 0.0

        formula_handler = self.formula_handler(context)

        for item in items:
            category = template.find_category(item.category_id)
            if category is None:
                logger.info("Skipping item with unknown category %s", item.category_id)
                continue

            field_values = dict(item.field_values)
            resolved = resolve_item(category, field_values, formula_handler)
            adjustments = self.item_adjustments(category, field_values)
            factor = 1.0
            for value in adjustments.values():
                factor *= value
            amount = resolved.amount * factor

            calculations = dict(resolved.calculations)
            if adjustments:
                calculations[ADJUSTMENTS_KEY] = dict(adjustments)

            calculated_items.append(CalculatedItem(
                category_id=item.category_id,
                field_values=field_values,
                amount=amount,
                order=item.order,
                base_amount=resolved.amount,
                calculations=calculations,
                adjustments=adjustments,
            ))
            warnings.extend(resolved.warnings)
            category_totals[category.id] = category_totals.get(category.id, 0.0) + amount
            grand_total += amount

        total, summary = self.aggregate(grand_total, context)

        metadata = {
            "base_total": round(grand_total, 2),
            "taxes": 0.0,
            "category_breakdown": category_totals,
            "strategy_used": self.type,
            "calculation_date": datetime.now(timezone.utc).isoformat(),
            "currency": context.currency,
            "warnings": warnings,
        }
        metadata.update(summary)

        logger.debug("Strategy %s: base %.2f -> total %.2f", self.type, grand_total, total)

        return CalculationResult(
            items=calculated_items,
            total=round(total, 2),
            subtotals=self.build_subtotals(category_totals, template),
            metadata=metadata,
        )

    def formula_handler(self, context: CalculationContext) -> Optional[FormulaHandler]:
        """Domain-specific formula pricing. None means generic evaluation only."""
        return None

    def item_adjustments(self, category: TemplateCategory,
                         field_values: Dict[str, Any]) -> Dict[str, float]:
        """Named multipliers applied to an item's resolved amount."""
        return {}

    @abstractmethod
    def aggregate(self, base_total: float,
                  context: CalculationContext) -> Tuple[float, Dict[str, Any]]:
        """
        Turn the sum of item amounts into the final total.
        Returns (total, metadata entries such as taxes and discounts).
        """
        pass

    def build_subtotals(self, category_totals: Dict[str, float],
                        template: TemplateView) -> Dict[str, float]:
        """Category name -> sum of its item amounts, for every template category."""
        return {
            category.name: round(category_totals.get(category.id, 0.0), 2)
            for category in template.categories
        }

    # --- Validation ---

    def validate(self, template: TemplateView, items: List[BudgetItemIn]) -> ValidationResult:
        errors: List[str] = []
        warnings: List[str] = []

        known_ids = {category.id for category in template.categories}
        for item in items:
            if item.category_id not in known_ids:
                warnings.append(
                    f'Item references unknown category "{item.category_id}" and will be ignored'
                )

        for category in template.categories:
            category_items = [item for item in items if item.category_id == category.id]

            if not category.repeatable and not category_items:
                warnings.append(f'Category "{category.name}" has no items')

            warnings.extend(self._check_dependencies(category))

            for item in category_items:
                for field in category.fields:
                    if field.is_calculated:
                        continue
                    value = lookup_raw(item.field_values, field)

                    if field.required and is_empty(value):
                        errors.append(
                            f'Required field "{field.label}" is empty in category "{category.name}"'
                        )
                        continue

                    if field.kind == FieldKind.NUMBER and not is_empty(value):
                        if self.parse_field_number(value) is None:
                            errors.append(f'Field "{field.label}" must be a valid number')
                            continue

                    self.check_field(field, value, errors, warnings)

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    def check_field(self, field: TemplateField, value, errors: List[str],
                    warnings: List[str]) -> None:
        """Strategy-specific soft checks. `value` may be None."""
        pass

    # --- Helper methods for all strategies ---

    def parse_field_number(self, value) -> Optional[float]:
        """Numeric reading of a submitted value; unit-cost pairs count as their total."""
        pair = unit_cost_pair(value)
        if pair is not None:
            return pair["total"]
        return parse_number(value)

    def _check_dependencies(self, category: TemplateCategory) -> List[str]:
        refs = set()
        for field in category.fields:
            refs.update((field.label, field.id, field.name))
        warnings = []
        for field in category.fields:
            if not field.is_calculated:
                continue
            for dependency in field.calculation.depends_on:
                if dependency not in refs:
                    warnings.append(
                        f'Calculated field "{field.label}" depends on "{dependency}", '
                        f'which is not a field of category "{category.name}"'
                    )
        return warnings
