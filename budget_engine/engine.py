"""
Calculation engine — the single entry point for pricing a budget.

    strategy  = template.calculation_rules.strategy (default when unknown)
    context   = company settings + configured defaults
    validate  -> ValidationFailed on errors
    calculate -> CalculationResult

The engine does not interpret formulas or apply taxes itself; strategies do.
"""

import logging
from typing import Callable, List, Optional

from pydantic import ValidationError

from .config import Settings, settings as default_settings
from .exceptions import (
    CompanyNotFound, InvalidCompanySettings, TemplateInactive, TemplateNotFound,
    ValidationFailed,
)
from .schemas import (
    BudgetItemIn, CalculationContext, CalculationResult, CompanySettings,
    PricingSettings, TaxRates, TemplateView, ValidationResult,
)
from .strategies.base import BaseStrategy
from .strategies.registry import get_strategy, list_strategies

logger = logging.getLogger(__name__)

# company_id -> stored settings, or None when the company does not exist
CompanySettingsProvider = Callable[[str], Optional[CompanySettings]]


def _pick(value, fallback):
    return fallback if value is None else value


def create_calculation_context(company_id: str, company: CompanySettings,
                               config: Settings = default_settings) -> CalculationContext:
    """
    Build the typed pricing context for one calculation.
    Values the company left unset fall back to `config` defaults; explicit zeros are kept.
    """
    try:
        tax_rates = TaxRates(
            default=_pick(company.tax_rate, config.DEFAULT_TAX_RATE),
            iss=_pick(company.iss_rate, config.DEFAULT_ISS_RATE),
            icms=_pick(company.icms_rate, config.DEFAULT_ICMS_RATE),
            ipi=_pick(company.ipi_rate, config.DEFAULT_IPI_RATE),
            pis_cofins=_pick(company.pis_cofins_rate, config.DEFAULT_PIS_COFINS_RATE),
            custom=dict(company.custom_rates),
        )
        pricing = PricingSettings(
            profit_margin=_pick(company.profit_margin, config.DEFAULT_PROFIT_MARGIN),
            complexity_factor=_pick(company.complexity_factor, config.DEFAULT_COMPLEXITY_FACTOR),
            risk_factor=_pick(company.risk_factor, config.DEFAULT_RISK_FACTOR),
            material_waste_factor=_pick(
                company.material_waste_factor, config.DEFAULT_MATERIAL_WASTE_FACTOR),
            equipment_depreciation_factor=_pick(
                company.equipment_depreciation_factor,
                config.DEFAULT_EQUIPMENT_DEPRECIATION_FACTOR),
            discount_rules=list(company.discount_rules),
        )
    except ValidationError as e:
        raise InvalidCompanySettings(f"Invalid pricing settings for company {company_id}: {e}")

    return CalculationContext(
        company_id=company_id,
        currency=company.currency or config.DEFAULT_CURRENCY,
        tax_rates=tax_rates,
        settings=pricing,
    )


class CalculationEngine:
    """Selects a strategy, builds the context and runs validate-then-calculate."""

    def __init__(self, company_settings: CompanySettingsProvider,
                 config: Settings = default_settings):
        self.company_settings = company_settings
        self.config = config

    def resolve_strategy(self, template: TemplateView) -> BaseStrategy:
        return get_strategy(template.calculation_rules.strategy)

    def build_context(self, company_id: str) -> CalculationContext:
        company = self.company_settings(company_id)
        if company is None:
            raise CompanyNotFound(f"Company not found: {company_id}")
        return create_calculation_context(company_id, company, self.config)

    def validate(self, template: Optional[TemplateView],
                 items: List[BudgetItemIn]) -> ValidationResult:
        """Validate budget data without calculating."""
        if template is None:
            raise TemplateNotFound("Template not found")
        return self.resolve_strategy(template).validate(template, items)

    def calculate(self, template: Optional[TemplateView], items: List[BudgetItemIn],
                  company_id: str) -> CalculationResult:
        """
        Validate then price a budget.

        Raises TemplateNotFound for a missing template and its subclass
        CompanyNotFound when the company context cannot be resolved,
        TemplateInactive for an inactive template and ValidationFailed when
        validation reports errors.
        """
        if template is None:
            raise TemplateNotFound("Template not found")
        if not template.is_active:
            raise TemplateInactive(f"Template {template.id} is inactive and cannot be used")

        strategy = self.resolve_strategy(template)
        context = self.build_context(company_id)

        validation = strategy.validate(template, items)
        if not validation.valid:
            logger.info(
                "Validation failed for template %s: %d error(s)",
                template.id, len(validation.errors),
            )
            raise ValidationFailed(validation)

        result = strategy.calculate(template, items, context)
        # Validation warnings travel with the result; they never block it
        result.metadata["warnings"] = validation.warnings + result.metadata.get("warnings", [])
        return result

    def available_strategies(self) -> List[str]:
        return list_strategies()
