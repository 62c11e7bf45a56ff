from __future__ import annotations

import logging

from decs_provider.domain.lookup_spec import LookupSpec
from decs_provider.domain.ports.catalog import ApiClientProtocol, CatalogClientProtocol
from decs_provider.domain.records import CandidateRecord, decode_candidates
from decs_provider.logging_setup import logEvent


class DecsCatalogReader(CatalogClientProtocol):
    """
    Назначение/ответственность:
        Адаптер CatalogClientProtocol поверх DecsApiClient.
        Выполняет listing-запрос типа lookup и декодирует ответ в CandidateRecord.
    Ограничения:
        - Одна попытка на уровне reader (ретраи, если включены, живут в клиенте).
        - TransportError/DecodeError пробрасываются без изменений.
    """

    def __init__(self, client: ApiClientProtocol, logger: logging.Logger | None = None, run_id: str = "-"):
        self._client = client
        self._logger = logger or logging.getLogger(__name__)
        self._run_id = run_id

    def list_candidates(self, spec: LookupSpec, scope: dict[str, str]) -> list[CandidateRecord]:
        logEvent(
            self._logger,
            logging.DEBUG,
            self._run_id,
            "catalog",
            f"POST {spec.api_path} scope={scope}",
        )
        data = self._client.postJson(spec.api_path, params=dict(scope))
        candidates = decode_candidates(spec.record_schema, data)
        logEvent(
            self._logger,
            logging.DEBUG,
            self._run_id,
            "catalog",
            f"decoded {len(candidates)} {spec.lookup_type} candidates",
        )
        return candidates


__all__ = ["DecsCatalogReader"]
