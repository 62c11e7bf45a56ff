from __future__ import annotations

import logging
from typing import Any, Mapping

from decs_provider.domain.criteria import build_criteria
from decs_provider.domain.ports.catalog import CatalogClientProtocol
from decs_provider.domain.projection.projector import ResultProjector
from decs_provider.domain.resolution.resolver import Resolver
from decs_provider.domain.resolution.rules import MatchPolicy
from decs_provider.domain.state import ResourceState
from decs_provider.lookups.registry import LookupRegistry
from decs_provider.logging_setup import logEvent


class LookupUseCase:
    """
    Назначение/ответственность:
        Один lookup-вызов: критерии -> каталог -> resolver -> проекция в состояние.
    Инварианты/гарантии:
        - Валидация критериев выполняется до любого обращения к каталогу.
        - Ровно один запрос к каталогу на вызов, без ретраев на этом уровне.
        - Нет частичного успеха: при любой ошибке состояние не изменяется.
    """

    def __init__(
        self,
        registry: LookupRegistry,
        catalog: CatalogClientProtocol,
        *,
        policy: MatchPolicy = MatchPolicy.FIRST_MATCH,
        logger: logging.Logger | None = None,
        run_id: str = "-",
    ) -> None:
        self.registry = registry
        self.catalog = catalog
        self.policy = policy
        self.logger = logger or logging.getLogger(__name__)
        self.run_id = run_id

    def run(
        self,
        lookup_type: str,
        raw_criteria: Mapping[str, Any],
        state: ResourceState | None = None,
    ) -> ResourceState:
        """
        Контракт (вход/выход):
            Вход: тип lookup, сырые критерии от хоста, текущее состояние (или None).
            Выход: состояние с id найденной записи и записанными обратно полями.
        Ошибки/исключения:
            UnknownLookupTypeError, ValidationError, TransportError, DecodeError,
            NotFoundError, AmbiguousMatchError (только STRICT).
        """
        spec = self.registry.get(lookup_type)
        criteria = build_criteria(spec.criteria_schema, raw_criteria)
        self._log(logging.INFO, "criteria", f"{lookup_type} lookup criteria={criteria.as_dict()}")

        scope = spec.build_scope(criteria)
        candidates = self.catalog.list_candidates(spec, scope)
        self._log(logging.INFO, "catalog", f"traversing {len(candidates)} {lookup_type} candidates")

        resolver = Resolver(spec, self.policy, logger=self.logger, run_id=self.run_id)
        record = resolver.resolve(criteria, candidates)

        target = state if state is not None else ResourceState()
        ResultProjector(spec.projection).project(
            record,
            target,
            criteria=criteria.as_dict(),
            criteria_keys=spec.criteria_schema.field_names(),
        )
        self._log(logging.INFO, "project", f"{lookup_type} resolved id={target.id}")
        return target

    def _log(self, level: int, component: str, message: str) -> None:
        logEvent(self.logger, level, self.run_id, component, message)


__all__ = ["LookupUseCase"]
