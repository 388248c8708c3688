"""
Response Parser - Validate generated text into an extraction record.

Only "descricao" is mandatory. Optional fields are repaired in place:
confidence is clamped or defaulted, non-string warnings are dropped and
malformed line items are skipped.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from astrografe.config import InvalidPayloadError, MissingFieldError

from .models import ExtractionResult, LineItem

logger = logging.getLogger(__name__)

__all__ = ["parse_extraction_response", "strip_code_fence", "DEFAULT_CONFIDENCE"]

DEFAULT_CONFIDENCE = 0.5

_FENCE_OPEN = re.compile(r"^```(?:json)?\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?```$")

_REQUIRED_ITEM_FIELDS = ("descricao", "quant", "preco_unit")


def strip_code_fence(raw: str) -> str:
    """Remove one optional ```json ... ``` wrapper and trim."""
    text = raw.strip()
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_confidence(value: Any) -> float:
    if not _is_number(value) or value != value:  # NaN
        return DEFAULT_CONFIDENCE
    # clamp before float() so huge integers cannot overflow
    return float(min(1, max(0, value)))


def _parse_warnings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [w for w in value if isinstance(w, str)]


def _parse_line_item(value: Any) -> LineItem | None:
    if not isinstance(value, dict):
        return None
    if not all(isinstance(value.get(key), str) for key in _REQUIRED_ITEM_FIELDS):
        return None

    medida = value.get("medida")
    return LineItem(
        descricao=value["descricao"],
        quant=value["quant"],
        preco_unit=value["preco_unit"],
        medida=medida if isinstance(medida, str) and medida else None,
    )


def _parse_line_items(value: Any) -> list[LineItem]:
    if not isinstance(value, list):
        return []
    items = [item for item in map(_parse_line_item, value) if item is not None]
    if len(items) < len(value):
        logger.debug("Dropped %d malformed line item(s)", len(value) - len(items))
    return items


def parse_extraction_response(raw: str, model_used: str = "") -> ExtractionResult:
    """
    Validate raw generated text.

    Args:
        raw: Text content returned by the model
        model_used: Provider that produced it

    Returns:
        Extraction result with optional fields repaired

    Raises:
        InvalidPayloadError: Text is not a JSON object
        MissingFieldError: "descricao" is absent or blank
    """
    cleaned = strip_code_fence(raw)

    try:
        parsed = json.loads(cleaned)
    except (ValueError, RecursionError) as e:
        raise InvalidPayloadError(
            f"Invalid JSON from LLM: {cleaned[:100]}",
            {"model_used": model_used, "position": getattr(e, "pos", None)},
        ) from e

    if not isinstance(parsed, dict):
        raise InvalidPayloadError(
            f"Expected a JSON object from LLM, got {type(parsed).__name__}",
            {"model_used": model_used},
        )

    descricao = parsed.get("descricao")
    if not isinstance(descricao, str) or not descricao.strip():
        raise MissingFieldError("descricao")

    return ExtractionResult(
        descricao=descricao.strip(),
        confidence=_parse_confidence(parsed.get("confidence")),
        warnings=_parse_warnings(parsed.get("warnings")),
        line_items=_parse_line_items(parsed.get("line_items")),
        model_used=model_used,
    )
