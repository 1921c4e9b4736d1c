"""Company settings lookup backing the calculation engine."""

from typing import Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from . import models
from .engine import CalculationEngine
from .exceptions import InvalidCompanySettings
from .schemas import CompanySettings


def get_company_settings(db: Session, company_id: str) -> Optional[CompanySettings]:
    """Stored settings for a company, or None when the company does not exist."""
    company = db.query(models.Company).filter(models.Company.id == company_id).first()
    if company is None:
        return None
    try:
        return CompanySettings.model_validate(company.settings or {})
    except ValidationError as e:
        raise InvalidCompanySettings(f"Stored settings for company {company_id} are invalid: {e}")


def engine_for_session(db: Session) -> CalculationEngine:
    """CalculationEngine that resolves company settings through this session."""
    return CalculationEngine(lambda company_id: get_company_settings(db, company_id))
