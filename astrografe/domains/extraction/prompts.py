"""
Extraction Prompts - Fixed instructions for the quote parser model.
"""

from __future__ import annotations

from astrografe.adapters.openrouter.models import ChatMessage

__all__ = ["SYSTEM_PROMPT", "build_user_prompt", "build_messages"]

SYSTEM_PROMPT = """You are a technical quote parser for Portuguese commercial documents.

Your task: extract the main "descrição" summary AND the line items table (Descrição, Medida, Quant., Preço Unit.).

Rules:
- descricao: clean technical summary of the article(s) - materials, dimensions (cm/mm/grs), printing specs (4/0, 4/4), finishing, packaging
- line_items: every row from the quote table that has a Descrição, Quant., and Preço Unit. - preserve values exactly as written
- medida: the dimension of the row when the table has one, otherwise omit it
- Exclude: greetings, signatures, payment terms, delivery dates, totals, VAT, repeated headers
- Preserve all units exactly: cm, mm, grs., 4/0, g/m², €
- Return ONLY valid JSON, nothing else.

Response schema (strict):
{
  "descricao": "string - clean technical summary",
  "confidence": 0.0,
  "warnings": ["string"],
  "line_items": [
    { "descricao": "string", "medida": "string", "quant": "string", "preco_unit": "string" }
  ]
}"""


def build_user_prompt(normalized_text: str) -> str:
    """Embed the document text in the user instruction."""
    return (
        "Document text:\n"
        '"""\n'
        f"{normalized_text}\n"
        '"""\n'
        "\n"
        "Extract the descrição summary and all line items "
        "(Descrição, Medida, Quant., Preço Unit.).\n"
        "Return JSON only."
    )


def build_messages(normalized_text: str) -> list[ChatMessage]:
    """System + user messages for one extraction call."""
    return [
        ChatMessage(role="system", content=SYSTEM_PROMPT),
        ChatMessage(role="user", content=build_user_prompt(normalized_text)),
    ]
