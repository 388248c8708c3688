"""
Astrografe - Resilient structured extraction for Portuguese commercial quotes.

Example:
    >>> from astrografe.domains.extraction import ExtractionRequest
    >>> request = ExtractionRequest.from_raw(raw_text)
    >>> result = await extractor.extract(request.text, pool)
"""

__version__ = "0.3.0"
__all__ = ["__version__"]
