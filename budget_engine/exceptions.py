"""Errors raised by the calculation engine."""


class BudgetEngineError(Exception):
    """Base class for every engine failure."""


class ValidationFailed(BudgetEngineError):
    """Submitted items violate template constraints. Carries the ValidationResult."""

    def __init__(self, result, message: str = "Budget data failed validation"):
        super().__init__(message)
        self.message = message
        self.result = result

    @property
    def errors(self) -> list:
        return self.result.errors

    @property
    def warnings(self) -> list:
        return self.result.warnings


class NotFoundError(BudgetEngineError):
    """A referenced template or company does not exist."""


class TemplateNotFound(NotFoundError):
    pass


class CompanyNotFound(TemplateNotFound):
    """The company context behind a calculation could not be resolved."""


class TemplateInactive(BudgetEngineError):
    pass


class InvalidCompanySettings(BudgetEngineError):
    pass


class FormulaEvaluationError(BudgetEngineError):
    """A calculated field's formula could not be evaluated."""
