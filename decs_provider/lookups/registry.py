from __future__ import annotations

from decs_provider.domain.exceptions import UnknownLookupTypeError
from decs_provider.domain.lookup_spec import LookupSpec
from decs_provider.lookups.image.spec import make_image_spec
from decs_provider.lookups.resource_group.spec import make_resource_group_spec


class LookupRegistry:
    """
    Назначение/ответственность:
        Явное отображение lookup_type -> LookupSpec.
    Взаимодействия:
        Создаётся композиционным корнем при старте и передаётся по ссылке;
        скрытого модульного состояния нет.
    """

    def __init__(self) -> None:
        self._specs: dict[str, LookupSpec] = {}

    def register(self, spec: LookupSpec) -> None:
        if spec.lookup_type in self._specs:
            raise ValueError(f"Lookup type already registered: {spec.lookup_type}")
        self._specs[spec.lookup_type] = spec

    def get(self, lookup_type: str) -> LookupSpec:
        try:
            return self._specs[lookup_type]
        except KeyError as exc:
            raise UnknownLookupTypeError(lookup_type, self.list_types()) from exc

    def list_types(self) -> list[str]:
        return sorted(self._specs)

    def __contains__(self, lookup_type: str) -> bool:
        return lookup_type in self._specs


def build_default_registry() -> LookupRegistry:
    registry = LookupRegistry()
    registry.register(make_image_spec())
    registry.register(make_resource_group_spec())
    return registry


__all__ = ["LookupRegistry", "build_default_registry"]
