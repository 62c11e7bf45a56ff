from __future__ import annotations

from typing import Any

from decs_provider.domain.error_codes import ErrorCode
from decs_provider.errors import AppError, ErrorCategory


class ValidationError(AppError):
    def __init__(self, lookup_type: str, violations: list[tuple[str, str]]):
        """
        Назначение:
            Критерии не прошли статические проверки (до любого сетевого вызова).
        Контракт:
            - violations: список (field, message), собранный целиком, а не по первой ошибке.
            - fields: имена полей в порядке обнаружения.
        """
        fields = [name for name, _ in violations]
        text = "; ".join(f"{name}: {message}" for name, message in violations)
        super().__init__(
            category=ErrorCategory.VALIDATION,
            code=ErrorCode.VALIDATION_ERROR.value,
            message=f"Invalid {lookup_type} lookup criteria: {text}",
            details={"lookup_type": lookup_type, "violations": [list(v) for v in violations]},
        )
        self.lookup_type = lookup_type
        self.violations = violations
        self.fields = fields


class TransportError(AppError):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        code: ErrorCode | None = None,
    ):
        """
        Назначение:
            Ошибка сетевого/HTTP уровня при обращении к каталогу.
        Контракт:
            - status_code: HTTP статус (None для сетевых ошибок).
            - body: сырое тело ответа с ошибкой, без изменений.
        """
        resolved = code or ErrorCode.from_status(status_code)
        super().__init__(
            category=ErrorCategory.API,
            code=resolved.value,
            message=message,
            details={"status_code": status_code},
        )
        self.status_code = status_code
        self.body = body


class DecodeError(AppError):
    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_JSON, details: dict[str, Any] | None = None):
        """
        Назначение:
            Тело ответа не соответствует ожидаемой схеме кандидатов.
        """
        super().__init__(
            category=ErrorCategory.API,
            code=code.value,
            message=message,
            details=details or {},
        )


class NotFoundError(AppError):
    def __init__(self, lookup_type: str, name: str, noun: str | None = None):
        """
        Назначение:
            Ни один кандидат не удовлетворил активным критериям.
        Контракт:
            - name: исходное значение критерия name, без нормализации.
        """
        super().__init__(
            category=ErrorCategory.RESOLVE,
            code=ErrorCode.NOT_FOUND.value,
            message=f"Cannot find {noun or lookup_type} name {_quote(name)}",
            details={"lookup_type": lookup_type, "name": name},
        )
        self.lookup_type = lookup_type
        self.name = name


class AmbiguousMatchError(AppError):
    def __init__(self, lookup_type: str, name: str, candidate_ids: list[int]):
        """
        Назначение:
            Строгая политика: активным критериям удовлетворяет более одного кандидата.
        """
        ids = ", ".join(str(i) for i in candidate_ids)
        super().__init__(
            category=ErrorCategory.RESOLVE,
            code=ErrorCode.AMBIGUOUS_MATCH.value,
            message=f"Ambiguous {lookup_type} name {_quote(name)}: {len(candidate_ids)} candidates match (ids: {ids})",
            details={"lookup_type": lookup_type, "name": name, "candidate_ids": list(candidate_ids)},
        )
        self.lookup_type = lookup_type
        self.name = name
        self.candidate_ids = list(candidate_ids)


class UnknownLookupTypeError(AppError):
    def __init__(self, lookup_type: str, known: list[str]):
        super().__init__(
            category=ErrorCategory.CONFIG,
            code=ErrorCode.UNKNOWN_LOOKUP_TYPE.value,
            message=f"Unsupported lookup type: {lookup_type} (known: {', '.join(known) or '-'})",
            details={"lookup_type": lookup_type, "known": list(known)},
        )
        self.lookup_type = lookup_type


def _quote(value: str) -> str:
    # Имя в двойных кавычках, кавычки и обратные слеши экранируются.
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


__all__ = [
    "ValidationError",
    "TransportError",
    "DecodeError",
    "NotFoundError",
    "AmbiguousMatchError",
    "UnknownLookupTypeError",
]
