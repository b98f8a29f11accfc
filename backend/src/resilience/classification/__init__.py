"""Error classification for the resilience core."""
from .classifier import MAX_ATTEMPTS, ErrorClassifier, infer_category
from .patterns import (
    COMPONENT_CATEGORIES,
    FailureSignature,
    SignaturePattern,
)

__all__ = [
    "ErrorClassifier",
    "MAX_ATTEMPTS",
    "infer_category",
    "FailureSignature",
    "SignaturePattern",
    "COMPONENT_CATEGORIES",
]
