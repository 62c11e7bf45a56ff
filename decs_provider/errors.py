from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class ErrorCategory(str, Enum):
    """
    Категория ошибки lookup и соответствующий exit code CLI.
    """

    VALIDATION = "validation"
    CONFIG = "config"
    API = "api"
    RESOLVE = "resolve"

    @property
    def exit_code(self) -> int:
        # resolve: кандидат не найден или неоднозначен; остальное: ошибка входа/окружения
        return 1 if self is ErrorCategory.RESOLVE else 2


@dataclass
class AppError(Exception):
    """
    Базовая ошибка lookup: категория, машинный код, сообщение и детали для лога.
    """

    category: ErrorCategory
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.category = ErrorCategory(self.category)
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    @property
    def exit_code(self) -> int:
        return self.category.exit_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "code": self.code,
            "message": self.message,
            "details": self.details or {},
        }


__all__ = ["AppError", "ErrorCategory"]
