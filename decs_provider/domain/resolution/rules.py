from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MatchPolicy(str, Enum):
    """
    Назначение:
        Политика выбора при нескольких подходящих кандидатах.

    Значения:
        FIRST_MATCH: побеждает первый подходящий кандидат в порядке ответа API.
        STRICT: более одного подходящего кандидата -> AmbiguousMatchError.
    """

    FIRST_MATCH = "first_match"
    STRICT = "strict"

    @classmethod
    def parse(cls, value: str | None) -> "MatchPolicy":
        if value is None or value == "":
            return cls.FIRST_MATCH
        normalized = value.strip().lower().replace("-", "_")
        for item in cls:
            if item.value == normalized:
                return item
        raise ValueError(f"Unsupported match policy: {value}")


@dataclass(frozen=True)
class MatchRule:
    """
    Назначение:
        Одно правило точного сравнения критерия с атрибутом записи.

    Поля:
        criterion: имя поля критериев (правило активно, только если поле задано)
        attribute: имя атрибута CandidateRecord
    """

    criterion: str
    attribute: str


NAME_RULE = MatchRule(criterion="name", attribute="name")


__all__ = ["MatchPolicy", "MatchRule", "NAME_RULE"]
