"""
Service pricing.

Per item:   amount = resolved amount x category factor x urgency factor
Grand total:
    discount = base x rate of the first discount rule with base >= min_amount
    iss      = (base - discount) x iss
    total    = (base - discount + iss) x (1 + profit_margin)

Formulas mentioning horas_consultoria, custo_servico_fixo or
custo_por_resultado use experience, complexity and result-based pricing.
"""

from typing import Any, Dict, List, Optional, Tuple

from .base import BaseStrategy
from ..field_resolver import FormulaHandler, is_empty, lookup_number
from ..schemas import (
    CalculationContext, DiscountRule, FieldKind, TemplateCategory, TemplateField,
    TemplateView,
)

CATEGORY_FACTORS = {
    "Consultoria": 1.2,
    "Desenvolvimento": 1.1,
    "Suporte": 1.0,
    "Treinamento": 1.15,
    "Manutenção": 0.9,
}

URGENCY_FACTORS = {
    "baixa": 0.95,
    "normal": 1.0,
    "alta": 1.2,
    "critica": 1.5,
}

EXPERIENCE_FACTORS = {
    "junior": 0.8,
    "pleno": 1.0,
    "senior": 1.3,
    "especialista": 1.6,
}

COMPLEXITY_MULTIPLIERS = {
    "simples": 0.8,
    "normal": 1.0,
    "complexo": 1.5,
    "muito_complexo": 2.0,
}

# Category whose subtotal is also reported split into advisory/execution shares
SPLIT_CATEGORY = "Recursos Humanos"
CONSULTING_SHARE = 0.7

HOURLY_RATE_RANGE = (20, 1000)
MAX_HOURS = 500


def _choice(field_values: Dict[str, Any], key: str, default: str) -> str:
    value = field_values.get(key)
    if is_empty(value):
        return default
    return str(value).strip().lower()


class ServiceStrategy(BaseStrategy):
    type = "service"

    def formula_handler(self, context: CalculationContext) -> Optional[FormulaHandler]:
        def handle(field: TemplateField, field_values: Dict[str, Any]) -> Optional[float]:
            formula = field.calculation.formula
            if "horas_consultoria" in formula:
                return self.consulting_cost(field_values)
            if "custo_servico_fixo" in formula:
                return self.fixed_service_cost(field_values)
            if "custo_por_resultado" in formula:
                return self.result_based_cost(field_values)
            return None

        return handle

    def consulting_cost(self, field_values: dict) -> float:
        hours = lookup_number(field_values, "quantidade_horas", "horas")
        rate = lookup_number(field_values, "valor_por_hora", "taxa_horaria")
        return hours * rate * self.get_experience_factor(field_values)

    def fixed_service_cost(self, field_values: dict) -> float:
        base_price = lookup_number(field_values, "valor_base")
        complexity = _choice(field_values, "complexidade", "normal")
        return base_price * COMPLEXITY_MULTIPLIERS.get(complexity, 1.0)

    def result_based_cost(self, field_values: dict) -> float:
        base_value = lookup_number(field_values, "valor_base")
        expected_results = lookup_number(field_values, "resultados_esperados", default=1.0)
        bonus = lookup_number(field_values, "bonus_performance")
        return base_value * expected_results + bonus

    def get_experience_factor(self, field_values: dict) -> float:
        level = _choice(field_values, "nivel_experiencia", "pleno")
        return EXPERIENCE_FACTORS.get(level, 1.0)

    def item_adjustments(self, category: TemplateCategory,
                         field_values: Dict[str, Any]) -> Dict[str, float]:
        urgency = _choice(field_values, "urgencia", "normal")
        return {
            "category_factor": CATEGORY_FACTORS.get(category.name, 1.0),
            "urgency_factor": URGENCY_FACTORS.get(urgency, 1.0),
        }

    def calculate_discount(self, amount: float, rules: List[DiscountRule]) -> float:
        """First rule whose threshold the amount meets wins; later rules are not considered."""
        for rule in rules:
            if amount >= rule.min_amount:
                return amount * rule.discount_rate
        return 0.0

    def aggregate(self, base_total: float,
                  context: CalculationContext) -> Tuple[float, Dict[str, Any]]:
        pricing = context.settings
        iss_rate = context.tax_rates.iss

        discount = self.calculate_discount(base_total, pricing.discount_rules)
        discounted = base_total - discount
        iss = discounted * iss_rate
        total = (discounted + iss) * (1 + pricing.profit_margin)

        return total, {
            "taxes": round(iss, 2),
            "discounts": round(discount, 2),
            "service_details": {
                "iss_rate": iss_rate,
                "profit_margin": pricing.profit_margin,
                "discount_applied": round(discount, 2),
            },
        }

    def build_subtotals(self, category_totals: Dict[str, float],
                        template: TemplateView) -> Dict[str, float]:
        subtotals = super().build_subtotals(category_totals, template)
        for category in template.categories:
            if category.name == SPLIT_CATEGORY:
                total = category_totals.get(category.id, 0.0)
                subtotals[f"{category.name} (Consultoria)"] = round(total * CONSULTING_SHARE, 2)
                subtotals[f"{category.name} (Execução)"] = round(total * (1 - CONSULTING_SHARE), 2)
        return subtotals

    def check_field(self, field: TemplateField, value, errors: List[str],
                    warnings: List[str]) -> None:
        label = field.label.lower()

        if field.kind == FieldKind.NUMBER:
            number = self.parse_field_number(value)
            if number is None:
                return
            low, high = HOURLY_RATE_RANGE
            if "valor_por_hora" in label and not low <= number <= high:
                warnings.append(
                    f'Hourly rate ({number:g}) in "{field.label}" looks out of range. '
                    f'Check it is correct.'
                )
            if "horas" in label and number > MAX_HOURS:
                warnings.append(
                    f'Very high hour count ({number:g}) in "{field.label}". Check it is correct.'
                )

        elif field.kind == FieldKind.SELECT and "complexidade" in label:
            if is_empty(value):
                return
            if str(value).strip().lower() not in COMPLEXITY_MULTIPLIERS:
                errors.append(
                    f'Invalid complexity value "{value}". '
                    f'Must be one of: {", ".join(COMPLEXITY_MULTIPLIERS)}.'
                )
