"""
Budget calculation endpoints.

POST /api/budgets/calculate — price a template + items for a company (no persistence)
POST /api/budgets/validate — check items against template constraints
GET  /api/budgets/strategies — list pricing strategies
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..companies import engine_for_session
from ..database import get_db
from ..exceptions import (
    InvalidCompanySettings, NotFoundError, TemplateInactive, ValidationFailed,
)
from ..schemas import CalculateRequest, ValidateRequest
from ..strategies.registry import list_strategies

router = APIRouter(prefix="/budgets", tags=["budgets"])


@router.post("/calculate")
def calculate_budget(body: CalculateRequest, db: Session = Depends(get_db)):
    engine = engine_for_session(db)
    try:
        result = engine.calculate(body.template, body.items, body.company_id)
    except ValidationFailed as e:
        raise HTTPException(status_code=400, detail={
            "message": e.message,
            "errors": e.errors,
            "warnings": e.warnings,
        })
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (TemplateInactive, InvalidCompanySettings) as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "message": "Budget calculated",
        "data": result.model_dump(),
    }


@router.post("/validate")
def validate_budget(body: ValidateRequest, db: Session = Depends(get_db)):
    engine = engine_for_session(db)
    return engine.validate(body.template, body.items).model_dump()


@router.get("/strategies")
def get_strategies():
    return {"strategies": list_strategies()}
