"""
Typed errors raised by the planning engine.

Calculators never raise for bad numeric input; everything here belongs to
the plan comparison lifecycle and to record lookups. The API layer is
responsible for turning these into HTTP responses.
"""
from typing import Optional
from uuid import UUID


class AdvisoryError(Exception):
    """Base class for all engine errors."""


class ComparisonError(AdvisoryError):
    def __init__(self, message: str, comparison_id: Optional[UUID] = None):
        super().__init__(message)
        self.comparison_id = comparison_id


# Validation errors: caller-correctable, never retried automatically

class ComparisonValidationError(ComparisonError):
    pass


class InvalidComparisonError(ComparisonValidationError):
    pass


class InvalidAnalysisError(ComparisonValidationError):
    pass


class InvalidReasonError(ComparisonValidationError):
    pass


# State errors: lifecycle ordering violations, the record is left untouched

class ComparisonStateError(ComparisonError):
    pass


class AlreadyAnalyzedError(ComparisonStateError):
    pass


class AlreadyDecidedError(ComparisonStateError):
    pass


class NotAnalyzedError(ComparisonStateError):
    pass


# Lookups

class NotFoundError(AdvisoryError):
    pass


class ComparisonNotFoundError(NotFoundError, ComparisonError):
    pass


class PlanNotFoundError(NotFoundError):
    pass


class ClientNotFoundError(NotFoundError):
    pass
