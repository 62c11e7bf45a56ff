from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from decs_provider.domain.exceptions import ValidationError


class FieldKind(str, Enum):
    """
    Назначение:
        Тип значения поля критериев поиска.
    """

    STRING = "string"
    POSITIVE_INT = "positive_int"


@dataclass(frozen=True)
class CriteriaField:
    """
    Назначение:
        Правило для одного поля критериев (тип, обязательность, границы).

    Пояснения:
        Для необязательных полей нулевое значение типа (0 / "") означает «не задано»,
        а не ошибку: так ведёт себя хост-фреймворк при чтении незаполненного поля.
    """

    name: str
    kind: FieldKind
    required: bool = False
    min_length: int = 1
    max_length: int | None = None
    min_value: int = 1
    description: str = ""


@dataclass(frozen=True)
class CriteriaSchema:
    """
    Назначение:
        Декларативная схема критериев конкретного типа lookup.
    Инварианты:
        - Имена полей уникальны.
        - Поле name присутствует и обязательно.
    """

    lookup_type: str
    fields: tuple[CriteriaField, ...]

    def __post_init__(self) -> None:
        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate criteria fields in {self.lookup_type} schema")
        name_field = self.get_field("name")
        if name_field is None or not name_field.required:
            raise ValueError(f"{self.lookup_type} schema must declare a required 'name' field")

    def get_field(self, name: str) -> CriteriaField | None:
        for item in self.fields:
            if item.name == name:
                return item
        return None

    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)


@dataclass(frozen=True)
class LookupCriteria:
    """
    Назначение:
        Провалидированные критерии одного lookup-вызова.
    Инварианты:
        - values содержит только заданные поля; отсутствие ключа == «не задано».
        - name всегда задан.
    """

    lookup_type: str
    values: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.values["name"]

    @property
    def pool(self) -> str | None:
        return self.values.get("pool")

    @property
    def sep_id(self) -> int | None:
        return self.values.get("sep_id")

    @property
    def tenant_id(self) -> int | None:
        return self.values.get("tenant_id")

    @property
    def rgid(self) -> int | None:
        return self.values.get("rgid")

    def is_set(self, field_name: str) -> bool:
        return field_name in self.values

    def get(self, field_name: str, default: Any = None) -> Any:
        return self.values.get(field_name, default)

    def as_dict(self) -> dict[str, Any]:
        return dict(self.values)


def build_criteria(schema: CriteriaSchema, raw: Mapping[str, Any]) -> LookupCriteria:
    """
    Назначение:
        Валидирует и нормализует сырые критерии по схеме.

    Входные данные:
        schema: CriteriaSchema
        raw: Mapping[str, Any]
            Значения от хоста; None / отсутствие ключа означает «не задано».

    Выходные данные:
        LookupCriteria

    Ошибки:
        ValidationError со всеми нарушениями сразу (неизвестные поля, типы, границы).
    """
    violations: list[tuple[str, str]] = []
    values: dict[str, Any] = {}

    known = set(schema.field_names())
    for key in raw:
        if key not in known:
            violations.append((str(key), "unknown field"))

    for rule in schema.fields:
        present, value, error = _check_field(rule, raw.get(rule.name))
        if error is not None:
            violations.append((rule.name, error))
            continue
        if present:
            values[rule.name] = value

    if violations:
        raise ValidationError(schema.lookup_type, violations)

    return LookupCriteria(lookup_type=schema.lookup_type, values=values)


def _check_field(rule: CriteriaField, value: Any) -> tuple[bool, Any, str | None]:
    """Возвращает (present, value, error) для одного поля."""
    if rule.kind == FieldKind.STRING:
        return _check_string(rule, value)
    if rule.kind == FieldKind.POSITIVE_INT:
        return _check_positive_int(rule, value)
    raise ValueError(f"Unsupported field kind: {rule.kind}")


def _check_string(rule: CriteriaField, value: Any) -> tuple[bool, Any, str | None]:
    if value is None or value == "":
        if rule.required:
            return False, None, "is required"
        return False, None, None
    if not isinstance(value, str):
        return False, None, "must be a string"
    length = len(value)
    if length < rule.min_length or (rule.max_length is not None and length > rule.max_length):
        upper = rule.max_length if rule.max_length is not None else "unlimited"
        return False, None, f"length must be between {rule.min_length} and {upper}, got {length}"
    return True, value, None


def _check_positive_int(rule: CriteriaField, value: Any) -> tuple[bool, Any, str | None]:
    if value is None:
        if rule.required:
            return False, None, "is required"
        return False, None, None
    if isinstance(value, bool) or not isinstance(value, int):
        return False, None, "must be an integer"
    if value == 0:
        if rule.required:
            return False, None, "is required"
        return False, None, None
    if value < rule.min_value:
        return False, None, f"must be at least {rule.min_value}, got {value}"
    return True, value, None


__all__ = [
    "FieldKind",
    "CriteriaField",
    "CriteriaSchema",
    "LookupCriteria",
    "build_criteria",
]
