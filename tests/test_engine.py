"""
Calculation engine tests — dispatch, context construction, error paths.

Tests:
1-3.  Strategy dispatch from template metadata
4-6.  Context defaults, explicit zeros, invalid settings
7-11. Errors — validation failure, missing company, missing/inactive template
12.   Warnings travel with a successful result
"""

import pytest

from budget_engine.config import Settings
from budget_engine.engine import CalculationEngine, create_calculation_context
from budget_engine.exceptions import (
    CompanyNotFound, InvalidCompanySettings, NotFoundError, TemplateInactive,
    TemplateNotFound, ValidationFailed,
)
from budget_engine.schemas import BudgetItemIn, CompanySettings
from budget_engine.strategies.default import DefaultStrategy
from budget_engine.strategies.industrial import IndustrialStrategy

from conftest import amount_category, hours_category, make_template


COMPANIES = {"acme": CompanySettings(tax_rate=0.18, profit_margin=0.30)}


def _engine():
    return CalculationEngine(COMPANIES.get)


def _labor_items():
    return [BudgetItemIn(category_id="cat-labor",
                         field_values={"quantidade_horas": 10, "valor_por_hora": 50})]


def test_engine_uses_template_strategy():
    template = make_template([hours_category("cat-labor", "Materiais")], strategy="industrial")
    result = _engine().calculate(template, _labor_items(), "acme")
    assert result.metadata["strategy_used"] == "industrial"
    assert result.total == pytest.approx(997.28, abs=0.01)


def test_engine_defaults_strategy_when_missing_or_unknown():
    engine = _engine()
    assert isinstance(engine.resolve_strategy(make_template([])), DefaultStrategy)
    assert isinstance(engine.resolve_strategy(make_template([], strategy="custom")), DefaultStrategy)
    assert isinstance(engine.resolve_strategy(make_template([], strategy="industrial")),
                      IndustrialStrategy)


def test_engine_default_scenario():
    result = _engine().calculate(make_template([hours_category()]), _labor_items(), "acme")
    assert result.total == 590
    assert result.metadata["currency"] == "BRL"


def test_context_falls_back_to_configured_defaults():
    config = Settings(DEFAULT_TAX_RATE=0.1, DEFAULT_CURRENCY="USD", DEFAULT_RISK_FACTOR=1.3)
    context = create_calculation_context("c", CompanySettings(), config)
    assert context.currency == "USD"
    assert context.tax_rates.default == 0.1
    assert context.settings.risk_factor == 1.3


def test_context_keeps_explicit_zero():
    context = create_calculation_context("c", CompanySettings(profit_margin=0, iss_rate=0))
    assert context.settings.profit_margin == 0
    assert context.tax_rates.iss == 0


def test_context_rejects_invalid_settings():
    with pytest.raises(InvalidCompanySettings):
        create_calculation_context("c", CompanySettings(risk_factor=0))
    with pytest.raises(InvalidCompanySettings):
        create_calculation_context("c", CompanySettings(tax_rate=-0.1))


def test_validation_failure_stops_calculation(monkeypatch):
    template = make_template([amount_category("a", "Materiais", required=True)])
    calls = []
    monkeypatch.setattr(DefaultStrategy, "calculate", lambda *args: calls.append(args))

    with pytest.raises(ValidationFailed) as excinfo:
        _engine().calculate(template, [BudgetItemIn(category_id="a", field_values={})], "acme")

    assert calls == []
    assert excinfo.value.result.valid is False
    assert 'Required field "valor"' in excinfo.value.errors[0]


def test_unknown_company_is_not_found():
    with pytest.raises(CompanyNotFound):
        _engine().calculate(make_template([hours_category()]), _labor_items(), "nobody")
    assert issubclass(CompanyNotFound, NotFoundError)


def test_unknown_company_is_caught_as_template_not_found():
    with pytest.raises(TemplateNotFound) as excinfo:
        _engine().calculate(make_template([hours_category()]), _labor_items(), "nobody")
    assert isinstance(excinfo.value, CompanyNotFound)


def test_missing_template_is_not_found():
    with pytest.raises(TemplateNotFound):
        _engine().calculate(None, [], "acme")
    with pytest.raises(TemplateNotFound):
        _engine().validate(None, [])


def test_inactive_template_is_rejected():
    template = make_template([hours_category()], is_active=False)
    with pytest.raises(TemplateInactive):
        _engine().calculate(template, _labor_items(), "acme")


def test_warnings_are_returned_with_result():
    template = make_template([
        hours_category(),
        {"id": "opt", "name": "Opcionais", "repeatable": False, "fields": []},
    ])
    result = _engine().calculate(template, _labor_items(), "acme")
    assert 'Category "Opcionais" has no items' in result.metadata["warnings"]


def test_engine_lists_strategies():
    assert _engine().available_strategies() == ["default", "industrial", "service"]
