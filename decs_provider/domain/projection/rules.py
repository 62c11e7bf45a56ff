from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WritebackField:
    """
    Назначение:
        Поле состояния, которое заполняется значением атрибута найденной записи.
    """

    state_key: str
    attribute: str


@dataclass(frozen=True)
class ProjectionRules:
    """
    Назначение:
        Правила проекции найденной записи в состояние вызывающего.

    Поля:
        id_attribute: атрибут записи, из которого строится id состояния
        writeback: поля, записываемые обратно независимо от того, были ли они заданы в критериях
    """

    writeback: tuple[WritebackField, ...] = ()
    id_attribute: str = "id"


__all__ = ["WritebackField", "ProjectionRules"]
