from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from decs_provider.domain.error_codes import ErrorCode
from decs_provider.domain.exceptions import DecodeError


@dataclass(frozen=True)
class RecordField:
    """
    Назначение:
        Описание одного поля записи каталога.

    Поля:
        attribute: имя атрибута внутри CandidateRecord (sep_id)
        json_key: ключ в JSON ответа API (sepid)
        value_type: int | str
        required: отсутствие обязательного поля -> DecodeError
        default: значение для отсутствующего или null поля (нулевое значение типа)
    """

    attribute: str
    json_key: str
    value_type: type
    required: bool = True
    default: Any = None


@dataclass(frozen=True)
class RecordSchema:
    """
    Назначение:
        Схема декодирования записей каталога для типа lookup.
    Инварианты:
        - id (int) и name (str) обязательны всегда и в fields не объявляются.
    """

    fields: tuple[RecordField, ...] = ()


@dataclass(frozen=True)
class CandidateRecord:
    """
    Назначение:
        Одна запись каталога, рассматриваемая при разрешении.
    Инварианты:
        - Создаётся заново на каждый lookup-вызов, не кэшируется.
        - attributes содержит только декодированные и типизированные значения.
    """

    id: int
    name: str
    attributes: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def get(self, attribute: str, default: Any = None) -> Any:
        if attribute == "id":
            return self.id
        if attribute == "name":
            return self.name
        return self.attributes.get(attribute, default)

    def has(self, attribute: str) -> bool:
        return attribute in ("id", "name") or attribute in self.attributes


_BASE_FIELDS = (
    RecordField(attribute="id", json_key="id", value_type=int),
    RecordField(attribute="name", json_key="name", value_type=str),
)


def decode_candidates(schema: RecordSchema, data: Any) -> list[CandidateRecord]:
    """
    Назначение:
        Декодирует тело ответа (JSON-массив) в список CandidateRecord с сохранением порядка.

    Ошибки:
        DecodeError(INVALID_ITEMS_FORMAT) если тело не массив;
        DecodeError(INVALID_RECORD) для первой некорректной записи.
    """
    if not isinstance(data, list):
        raise DecodeError(
            f"Unexpected response format: expected JSON array, got {type(data).__name__}",
            code=ErrorCode.INVALID_ITEMS_FORMAT,
        )
    return [decode_record(schema, item, index) for index, item in enumerate(data)]


def decode_record(schema: RecordSchema, item: Any, index: int) -> CandidateRecord:
    if not isinstance(item, dict):
        raise DecodeError(
            f"Record #{index}: expected JSON object, got {type(item).__name__}",
            code=ErrorCode.INVALID_RECORD,
            details={"index": index},
        )

    decoded: dict[str, Any] = {}
    for rule in (*_BASE_FIELDS, *schema.fields):
        if rule.json_key not in item or item[rule.json_key] is None:
            if rule.default is not None:
                decoded[rule.attribute] = rule.default
                continue
            if rule.required:
                raise DecodeError(
                    f"Record #{index}: missing field '{rule.json_key}'",
                    code=ErrorCode.INVALID_RECORD,
                    details={"index": index, "field": rule.json_key},
                )
            continue
        value = item[rule.json_key]
        if not _is_instance(value, rule.value_type):
            raise DecodeError(
                f"Record #{index}: field '{rule.json_key}' must be {rule.value_type.__name__}, "
                f"got {type(value).__name__}",
                code=ErrorCode.INVALID_RECORD,
                details={"index": index, "field": rule.json_key},
            )
        decoded[rule.attribute] = value

    record_id = decoded.pop("id")
    name = decoded.pop("name")
    return CandidateRecord(id=record_id, name=name, attributes=decoded, raw=dict(item))


def _is_instance(value: Any, value_type: type) -> bool:
    # bool является подклассом int, но идентификатором быть не может
    if value_type is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, value_type)


__all__ = [
    "RecordField",
    "RecordSchema",
    "CandidateRecord",
    "decode_candidates",
    "decode_record",
]
