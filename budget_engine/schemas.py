from pydantic import BaseModel, ConfigDict, Field, AliasChoices
from typing import Any, Dict, List, Optional
import enum


# --- Template (read-only during a calculation) ---

class FieldKind(str, enum.Enum):
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    DATE = "date"
    BOOLEAN = "boolean"
    CALCULATED = "calculated"


class FieldCalculation(BaseModel):
    is_calculated: bool = True
    formula: str = ""
    depends_on: List[str] = []


class TemplateField(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    label: str
    kind: FieldKind = Field(
        default=FieldKind.TEXT, validation_alias=AliasChoices("kind", "type"),
    )
    required: bool = False
    options: Optional[Any] = None
    validation: Optional[str] = None
    order: int = 0
    calculation: Optional[FieldCalculation] = None

    @property
    def name(self) -> str:
        """Formula token for this field: lower-cased, whitespace to underscores."""
        return "_".join(self.label.lower().split())

    @property
    def is_calculated(self) -> bool:
        return (
            self.kind == FieldKind.CALCULATED
            and self.calculation is not None
            and self.calculation.is_calculated
        )


class TemplateCategory(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    order: int = 0
    repeatable: bool = Field(
        default=False, validation_alias=AliasChoices("repeatable", "is_repeatable"),
    )
    fields: List[TemplateField] = []


class CalculationRules(BaseModel):
    model_config = ConfigDict(extra="allow")

    strategy: Optional[str] = None


class TemplateView(BaseModel):
    id: str
    name: Optional[str] = None
    is_active: bool = True
    calculation_rules: CalculationRules = CalculationRules()
    categories: List[TemplateCategory] = []

    def find_category(self, category_id: str) -> Optional[TemplateCategory]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None


# --- Submitted items ---

class BudgetItemIn(BaseModel):
    category_id: str
    field_values: Dict[str, Any] = {}
    order: int = Field(default=0, ge=0)


# --- Company pricing configuration ---

class DiscountRule(BaseModel):
    min_amount: float = Field(ge=0)
    discount_rate: float = Field(default=0.0, ge=0, le=1)


class CompanySettings(BaseModel):
    """Stored per-company settings. Every value is optional; engine defaults fill the gaps."""
    model_config = ConfigDict(extra="allow")

    currency: Optional[str] = None
    tax_rate: Optional[float] = None
    iss_rate: Optional[float] = None
    pis_cofins_rate: Optional[float] = None
    icms_rate: Optional[float] = None
    ipi_rate: Optional[float] = None
    custom_rates: Dict[str, float] = {}
    profit_margin: Optional[float] = None
    complexity_factor: Optional[float] = None
    risk_factor: Optional[float] = None
    material_waste_factor: Optional[float] = None
    equipment_depreciation_factor: Optional[float] = None
    discount_rules: List[DiscountRule] = []


class TaxRates(BaseModel):
    default: float = Field(ge=0)
    iss: float = Field(ge=0)
    icms: float = Field(ge=0)
    ipi: float = Field(ge=0)
    pis_cofins: float = Field(ge=0)
    custom: Dict[str, float] = {}


class PricingSettings(BaseModel):
    profit_margin: float = Field(ge=0)
    complexity_factor: float = Field(gt=0)
    risk_factor: float = Field(gt=0)
    material_waste_factor: float = Field(gt=0)
    equipment_depreciation_factor: float = Field(gt=0)
    # Evaluated in order; the first rule whose min_amount is met wins
    discount_rules: List[DiscountRule] = []


class CalculationContext(BaseModel):
    company_id: str
    currency: str
    tax_rates: TaxRates
    settings: PricingSettings


# --- Outputs ---

class CalculatedItem(BaseModel):
    category_id: str
    field_values: Dict[str, Any]
    amount: float
    order: int
    base_amount: float = 0.0
    calculations: Dict[str, Any] = {}
    adjustments: Dict[str, float] = {}


class CalculationResult(BaseModel):
    items: List[CalculatedItem]
    total: float
    subtotals: Dict[str, float]
    metadata: Dict[str, Any]


class ValidationResult(BaseModel):
    valid: bool
    errors: List[str] = []
    warnings: List[str] = []


# --- Request bodies ---

class CalculateRequest(BaseModel):
    company_id: str
    template: TemplateView
    items: List[BudgetItemIn] = []


class ValidateRequest(BaseModel):
    template: TemplateView
    items: List[BudgetItemIn] = []


class CompanyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    settings: CompanySettings = CompanySettings()


class Company(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    settings: CompanySettings
