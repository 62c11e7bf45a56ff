from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping


@dataclass
class ResourceState:
    """
    Назначение/ответственность:
        Персистентное состояние data source на стороне вызывающего.
        Хранит непрозрачный id и атрибуты по именам полей схемы.
    Инварианты/гарантии:
        - id либо None (ещё не разрешено), либо текстовая форма целого id записи.
        - Изменяется только проектором результата (целиком) или хостом.
    """

    id: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def apply(self, state_id: str, updates: Mapping[str, Any], remove: Iterable[str] = ()) -> None:
        """Одно изменение состояния: id, новые значения и удаление устаревших ключей."""
        for key in remove:
            self.attributes.pop(key, None)
        self.attributes.update(updates)
        self.id = state_id

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "attributes": dict(self.attributes)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ResourceState":
        if not data:
            return cls()
        attributes = data.get("attributes") or {}
        if not isinstance(attributes, dict):
            raise ValueError("state attributes must be a JSON object")
        raw_id = data.get("id")
        return cls(id=str(raw_id) if raw_id is not None else None, attributes=dict(attributes))


__all__ = ["ResourceState"]
