"""Data module - claims dataset loading, validation and sampling."""

from .loader import load_claims, sample_explanation_request, split_claims, validate_claims
from .schemas import (
    CLAIM_COLUMNS,
    CLAIM_FEATURES,
    TARGET,
    ClaimRecord,
    ClaimsSplit,
    ExplanationRequest,
)
from .simulator import simulate_claims

__all__ = [
    "CLAIM_COLUMNS",
    "CLAIM_FEATURES",
    "TARGET",
    "ClaimRecord",
    "ClaimsSplit",
    "ExplanationRequest",
    "load_claims",
    "sample_explanation_request",
    "simulate_claims",
    "split_claims",
    "validate_claims",
]
