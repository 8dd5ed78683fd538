"""
AI FAQ records: validation, insert/update payloads and index payloads.

Shared by the `/admin-ai-faqs` endpoint and the Qdrant re-index job.
"""

from typing import Any

VALID_SCENARIOS = ("simple", "conflict", "emergency", "procedural", "educational")
VALID_TONES = ("formal", "friendly", "warning", "urgent")

REQUIRED_FIELDS = ("category", "question", "answer")

# Column -> default applied on insert
FAQ_DEFAULTS: dict[str, Any] = {
    "condominio_id": None,
    "article_reference": None,
    "tags": [],
    "keywords": [],
    "scenario_type": "simple",
    "tone": "friendly",
    "priority": 3,
    "requires_sindico_action": False,
    "requires_assembly_decision": False,
    "has_legal_implications": False,
    "question_variations": [],
}

FAQ_COLUMNS = REQUIRED_FIELDS + tuple(FAQ_DEFAULTS)

# Updated only when the new value is truthy; the others whenever present
_TRUTHY_ONLY_ON_UPDATE = ("category", "question", "answer", "scenario_type", "tone")


class FaqValidationError(ValueError):
    """Raised when an AI FAQ payload is invalid."""


def _validate_enums(payload: dict) -> None:
    scenario = payload.get("scenario_type")
    if scenario and scenario not in VALID_SCENARIOS:
        raise FaqValidationError(
            f"scenario_type inválido. Permitidos: {', '.join(VALID_SCENARIOS)}"
        )

    tone = payload.get("tone")
    if tone and tone not in VALID_TONES:
        raise FaqValidationError(f"tone inválido. Permitidos: {', '.join(VALID_TONES)}")


def prepare_faq_insert(payload: dict) -> dict:
    """
    Validate a create payload and fill defaults.

    Unknown keys are dropped. Falsy optional values fall back to their
    defaults (an empty tag list stays empty, a missing tone becomes "friendly").

    Raises:
        FaqValidationError: On missing required fields or invalid enum values
    """
    if any(not payload.get(f) for f in REQUIRED_FIELDS):
        raise FaqValidationError(f"Campos obrigatórios: {', '.join(REQUIRED_FIELDS)}")

    _validate_enums(payload)

    row = {f: payload[f] for f in REQUIRED_FIELDS}
    for column, default in FAQ_DEFAULTS.items():
        value = payload.get(column)
        row[column] = value if value else (list(default) if isinstance(default, list) else default)
    return row


def prepare_faq_update(payload: dict) -> dict:
    """
    Validate an update payload and keep only the columns to change.

    Text and enum columns change only when given a non-empty value; the rest
    change whenever the key is present (so flags can be set to false and
    references cleared with null).

    Raises:
        FaqValidationError: On invalid enum values
    """
    _validate_enums(payload)

    update: dict[str, Any] = {}
    for column in FAQ_COLUMNS:
        if column not in payload:
            continue
        value = payload[column]
        if column in _TRUTHY_ONLY_ON_UPDATE and not value:
            continue
        update[column] = value
    return update


def faq_embedding_text(faq: dict) -> str:
    """Text embedded for a FAQ in the vector index."""
    return f"{faq.get('question', '')} {faq.get('answer', '')}".strip()


def faq_index_payload(faq: dict) -> dict:
    """Payload stored with a FAQ point in Qdrant."""
    return {
        "faq_id": faq.get("id"),
        "question": faq.get("question"),
        "answer": faq.get("answer"),
        "category": faq.get("category"),
        "tags": faq.get("tags") or [],
        "keywords": faq.get("keywords") or [],
        "article_reference": faq.get("article_reference") or None,
        "scenario_type": faq.get("scenario_type") or "simple",
        "tone": faq.get("tone") or "friendly",
        "priority": faq.get("priority") or 3,
        "requires_sindico_action": faq.get("requires_sindico_action") or False,
        "requires_assembly_decision": faq.get("requires_assembly_decision") or False,
        "has_legal_implications": faq.get("has_legal_implications") or False,
        "question_variations": faq.get("question_variations") or [],
        "condominio_id": faq.get("condominio_id"),
        "created_at": faq.get("created_at"),
    }
