"""
Extraction Domain - Noisy quote text to validated structured record.

This domain handles:
- Line-break and hyphenation repair
- Prompting the generation service
- Validating and repairing generated JSON
- Retrying across a provider pool
"""

from .contracts import Extractor, GenerationClient, ProviderSelector
from .extractor import ResilientExtractor
from .models import ExtractionRequest, ExtractionResult, LineItem
from .normalizer import normalize_text, strip_accents
from .parser import parse_extraction_response, strip_code_fence

__all__ = [
    # Contracts
    "Extractor",
    "GenerationClient",
    "ProviderSelector",
    # Models
    "ExtractionRequest",
    "ExtractionResult",
    "LineItem",
    # Implementations
    "ResilientExtractor",
    "normalize_text",
    "strip_accents",
    "parse_extraction_response",
    "strip_code_fence",
]
