from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from decs_provider.domain.lookup_spec import LookupSpec
from decs_provider.domain.records import CandidateRecord


@runtime_checkable
class CatalogClientProtocol(Protocol):
    """
    Назначение/ответственность:
        Порт чтения каталога кандидатов удалённой платформы.
    Взаимодействия:
        Use-case зависит только от протокола; транспорт и авторизация скрыты в реализации.
    Ограничения:
        - Синхронный вызов, один запрос на lookup.
        - Серверная предфильтрация по scope не считается исчерпывающей.
    """

    def list_candidates(self, spec: LookupSpec, scope: dict[str, str]) -> list[CandidateRecord]:
        """
        Контракт (вход/выход):
            - Вход: LookupSpec (путь API и схема записей), scope (query-параметры).
            - Выход: кандидаты в порядке ответа API.
        Ошибки/исключения:
            TransportError, DecodeError; без ретраев на этом уровне.
        """
        ...


@runtime_checkable
class ApiClientProtocol(Protocol):
    """
    Назначение:
        Контракт HTTP-клиента DECS API, на который опирается reader каталога.
    """

    def postJson(self, path: str, params: dict[str, Any] | None = None) -> Any: ...


__all__ = ["CatalogClientProtocol", "ApiClientProtocol"]
