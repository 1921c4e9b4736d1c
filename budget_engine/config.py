from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./budgets.db"
    APP_NAME: str = "Budget Calculation Engine"
    LOG_LEVEL: str = "INFO"

    # Fallbacks used when a company has not configured its own values
    DEFAULT_CURRENCY: str = "BRL"
    DEFAULT_TAX_RATE: float = 0.18
    DEFAULT_ISS_RATE: float = 0.05
    DEFAULT_PIS_COFINS_RATE: float = 0.038
    DEFAULT_ICMS_RATE: float = 0.18
    DEFAULT_IPI_RATE: float = 0.05

    DEFAULT_PROFIT_MARGIN: float = 0.30
    DEFAULT_RISK_FACTOR: float = 1.1
    DEFAULT_COMPLEXITY_FACTOR: float = 1.0
    DEFAULT_MATERIAL_WASTE_FACTOR: float = 1.1
    DEFAULT_EQUIPMENT_DEPRECIATION_FACTOR: float = 1.05

    class Config:
        env_file = ".env"


settings = Settings()
