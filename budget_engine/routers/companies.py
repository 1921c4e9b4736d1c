from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models
from ..database import get_db
from ..engine import create_calculation_context
from ..exceptions import InvalidCompanySettings
from ..schemas import Company, CompanyCreate, CompanySettings

router = APIRouter(prefix="/companies", tags=["companies"])


def _get_company_or_404(company_id: str, db: Session) -> models.Company:
    company = db.query(models.Company).filter(models.Company.id == company_id).first()
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


def _check_settings(company_id: str, settings: CompanySettings):
    """Reject settings that would not build a valid pricing context."""
    try:
        create_calculation_context(company_id, settings)
    except InvalidCompanySettings as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/", response_model=Company)
def create_company(body: CompanyCreate, db: Session = Depends(get_db)):
    company = models.Company(name=body.name)
    _check_settings("new", body.settings)
    company.settings = body.settings.model_dump(exclude_none=True)
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


@router.get("/{company_id}", response_model=Company)
def get_company(company_id: str, db: Session = Depends(get_db)):
    return _get_company_or_404(company_id, db)


@router.get("/{company_id}/settings", response_model=CompanySettings)
def get_company_settings(company_id: str, db: Session = Depends(get_db)):
    company = _get_company_or_404(company_id, db)
    return CompanySettings.model_validate(company.settings or {})


@router.put("/{company_id}/settings", response_model=CompanySettings)
def update_company_settings(company_id: str, body: CompanySettings,
                            db: Session = Depends(get_db)):
    company = _get_company_or_404(company_id, db)
    _check_settings(company_id, body)
    company.settings = body.model_dump(exclude_none=True)
    db.commit()
    db.refresh(company)
    return CompanySettings.model_validate(company.settings)
