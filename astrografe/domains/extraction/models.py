"""
Extraction Models - Data types for extraction domain.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from .normalizer import normalize_text

DEFAULT_MAX_CHARS = 50_000


class ExtractionRequest(BaseModel):
    """Normalized document text ready for extraction."""

    text: str
    original_chars: int = 0
    truncated: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_raw(cls, raw: str, max_chars: int | None = DEFAULT_MAX_CHARS) -> "ExtractionRequest":
        """
        Normalize raw text and cap its length.

        Args:
            raw: Decoded document text
            max_chars: Character cap, None for no cap

        Returns:
            Request carrying at most max_chars normalized characters
        """
        normalized = normalize_text(raw)
        capped = normalized if max_chars is None else normalized[:max_chars]
        return cls(
            text=capped,
            original_chars=len(normalized),
            truncated=len(capped) < len(normalized),
        )


class LineItem(BaseModel):
    """One row of a quote table; values kept exactly as written."""

    descricao: str
    quant: str
    preco_unit: str
    medida: str | None = None


class ExtractionResult(BaseModel):
    """Validated extraction for one document."""

    descricao: str = Field(min_length=1)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    warnings: list[str] = Field(default_factory=list)
    line_items: list[LineItem] = Field(default_factory=list)
    model_used: str = ""

    @field_validator("descricao")
    @classmethod
    def descricao_not_blank(cls, value: str) -> str:
        """Reject whitespace-only descriptions."""
        value = value.strip()
        if not value:
            raise ValueError("descricao must not be blank")
        return value

    @property
    def line_item_count(self) -> int:
        """Number of kept line items."""
        return len(self.line_items)

    @property
    def has_warnings(self) -> bool:
        """Whether the model flagged anything."""
        return bool(self.warnings)
