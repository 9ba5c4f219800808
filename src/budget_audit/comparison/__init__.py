"""Comparison module entry point."""

from .errors import ComparisonError, NotFoundError, ValidationError
from .models import ComparisonMode, ComparisonResult, ImpactLevel
from .normalizers import normalize_budget, normalize_order_form
from .repository import DocumentRepository, extract_order_form_id
from .service import ComparisonService, build_metadata

__all__ = [
    "ComparisonError",
    "NotFoundError",
    "ValidationError",
    "ComparisonMode",
    "ComparisonResult",
    "ImpactLevel",
    "normalize_budget",
    "normalize_order_form",
    "DocumentRepository",
    "extract_order_form_id",
    "ComparisonService",
    "build_metadata",
]
