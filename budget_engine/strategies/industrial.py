"""
Industrial pricing.

Per item:   amount = resolved amount x category factor
Grand total:
    adjusted = base x risk_factor x complexity_factor
    taxes    = adjusted x (icms + ipi + pis_cofins)      # additive, not compounded
    total    = (adjusted + taxes) x (1 + profit_margin)

Formulas mentioning horas_trabalho, custo_material or custo_equipamento are
priced with the company's complexity, waste and depreciation factors instead
of generic evaluation.
"""

from typing import Any, Dict, List, Optional, Tuple

from .base import BaseStrategy
from ..field_resolver import FormulaHandler, lookup_number
from ..schemas import CalculationContext, FieldKind, TemplateCategory, TemplateField

# Category name -> multiplier on item amounts
CATEGORY_FACTORS = {
    "Recursos Humanos": 1.0,
    "Materiais": 1.10,        # material waste
    "Equipamentos": 1.05,     # equipment depreciation
    "Subcontratação": 1.15,   # subcontracting overhead
    "Logística": 1.20,        # logistics complexity
}

MAX_HOURS = 2000
MAX_VALUE = 1_000_000


class IndustrialStrategy(BaseStrategy):
    type = "industrial"

    def formula_handler(self, context: CalculationContext) -> Optional[FormulaHandler]:
        pricing = context.settings

        def handle(field: TemplateField, field_values: Dict[str, Any]) -> Optional[float]:
            formula = field.calculation.formula
            if "horas_trabalho" in formula:
                return self.work_hours_cost(field_values, pricing.complexity_factor)
            if "custo_material" in formula:
                return self.material_cost(field_values, pricing.material_waste_factor)
            if "custo_equipamento" in formula:
                return self.equipment_cost(field_values, pricing.equipment_depreciation_factor)
            return None

        return handle

    def work_hours_cost(self, field_values: dict, complexity_factor: float) -> float:
        hours = lookup_number(field_values, "quantidade_horas", "horas")
        rate = lookup_number(field_values, "valor_por_hora", "taxa_horaria")
        return hours * rate * complexity_factor

    def material_cost(self, field_values: dict, waste_factor: float) -> float:
        quantity = lookup_number(field_values, "quantidade")
        unit_price = lookup_number(field_values, "valor_unitario", "preco_unitario")
        return quantity * unit_price * waste_factor

    def equipment_cost(self, field_values: dict, depreciation_factor: float) -> float:
        hours = lookup_number(field_values, "horas_equipamento")
        rate = lookup_number(field_values, "custo_por_hora_equipamento")
        return hours * rate * depreciation_factor

    def get_category_factor(self, category_name: str) -> float:
        return CATEGORY_FACTORS.get(category_name, 1.0)

    def item_adjustments(self, category: TemplateCategory,
                         field_values: Dict[str, Any]) -> Dict[str, float]:
        return {"category_factor": self.get_category_factor(category.name)}

    def aggregate(self, base_total: float,
                  context: CalculationContext) -> Tuple[float, Dict[str, Any]]:
        pricing = context.settings
        rates = context.tax_rates

        adjusted = base_total * pricing.risk_factor * pricing.complexity_factor
        taxes = adjusted * rates.icms + adjusted * rates.ipi + adjusted * rates.pis_cofins
        total = (adjusted + taxes) * (1 + pricing.profit_margin)

        return total, {
            "taxes": round(taxes, 2),
            "adjusted_total": round(adjusted, 2),
            "profit": round(total - adjusted - taxes, 2),
            "industrial_factors": {
                "complexity_factor": pricing.complexity_factor,
                "risk_factor": pricing.risk_factor,
                "equipment_factor": pricing.equipment_depreciation_factor,
            },
        }

    def check_field(self, field: TemplateField, value, errors: List[str],
                    warnings: List[str]) -> None:
        if field.kind != FieldKind.NUMBER:
            return
        number = self.parse_field_number(value)
        if number is None:
            return
        label = field.label.lower()
        if "horas" in label and number > MAX_HOURS:
            warnings.append(
                f'Very high hour count ({number:g}) in "{field.label}". Check it is correct.'
            )
        if "valor" in label and number > MAX_VALUE:
            warnings.append(
                f'Very high value ({number:g}) in "{field.label}". Check it is correct.'
            )
