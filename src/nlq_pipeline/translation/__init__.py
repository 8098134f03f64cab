"""
Translation Module
==================

Two-phase query translation and SQL correction.
"""

from nlq_pipeline.translation.parsing import assemble_sql, build_interpretation, is_always_true
from nlq_pipeline.translation.service import TranslationService

__all__ = [
    "TranslationService",
    "assemble_sql",
    "build_interpretation",
    "is_always_true",
]
