"""Prompt builders for coffee cup readings."""

from __future__ import annotations

from typing import List

from models.coffee_record import NormalizedAttributes

CLAUSE_SEPARATOR = ", "
READING_REQUEST = "Kahve falımı yorumla."

POLICY_DIRECTIVES = (
    "Yanıtını yalnızca Türkçe ver.",
    "Fincandaki şekilleri ve sembolleri tek tek yorumlayarak akıcı bir metin yaz.",
    "Yorumunu samimi ve olumlu bir dille, başlık veya liste kullanmadan yaz.",
    "Falın bilimsel geçerliliği hakkında uyarı ya da açıklama ekleme.",
)


def attribute_clauses(attributes: NormalizedAttributes) -> List[str]:
    """Return the self-description clauses for the attributes that are present."""
    clauses: List[str] = []
    if attributes.name is not None:
        clauses.append(f"ismim {attributes.name}")
    if attributes.age is not None:
        clauses.append(f"yaşım {attributes.age}")
    if attributes.relation_status is not None:
        clauses.append(f"medeni durumum {attributes.relation_status}")
    if attributes.employment_status is not None:
        clauses.append(f"iş durumum {attributes.employment_status}")
    return clauses


def build_reading_instruction(attributes: NormalizedAttributes) -> str:
    """Return the core instruction, falling back to the bare reading request."""
    if attributes.is_empty():
        return READING_REQUEST
    return f"{CLAUSE_SEPARATOR.join(attribute_clauses(attributes))}. {READING_REQUEST}"


def build_fortune_prompt(attributes: NormalizedAttributes) -> str:
    """Return the full prompt: core instruction followed by the fixed directives."""
    return "\n".join([build_reading_instruction(attributes), *POLICY_DIRECTIVES])
