"""
Bills Processing Module
=======================
Heuristic bill-text extraction and supply-rate savings math.
PDF bytes -> text (NormalizationService) -> BillAudit (extract_bill_audit)
-> SavingsResult (compute_savings). The caller composes the steps.
"""

from .models import BillAudit, SavingsResult
from .normalizer import NormalizationService, extract_pdf_text
from .text_cleaner import TextCleaner
from .extractor import extract_bill_audit
from .savings import coerce_rate, compute_savings

__all__ = [
    'BillAudit', 'SavingsResult', 'NormalizationService', 'extract_pdf_text',
    'TextCleaner', 'extract_bill_audit', 'coerce_rate', 'compute_savings',
]
