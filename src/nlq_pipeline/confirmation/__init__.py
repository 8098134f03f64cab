"""
Confirmation Module
===================

Caller review of low-confidence translations.
"""

from nlq_pipeline.confirmation.formatter import (
    ConfirmationFormatter,
    ConfirmationPrompt,
    confidence_label,
)
from nlq_pipeline.confirmation.mappings import apply_confirmed_mappings

__all__ = [
    "ConfirmationFormatter",
    "ConfirmationPrompt",
    "apply_confirmed_mappings",
    "confidence_label",
]
