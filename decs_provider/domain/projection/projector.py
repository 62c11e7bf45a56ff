from __future__ import annotations

from typing import Any, Iterable, Mapping

from decs_provider.domain.projection.rules import ProjectionRules
from decs_provider.domain.records import CandidateRecord
from decs_provider.domain.state import ResourceState


class ResultProjector:
    """
    Назначение/ответственность:
        Записывает идентичность найденной записи и фактические значения
        необязательных полей в состояние вызывающего.
    Инварианты/гарантии:
        - Все значения вычисляются до изменения состояния: либо записано всё, либо ничего.
        - Повторная проекция той же записи даёт идентичное состояние.
        - Критерии текущего вызова заменяют критерии, оставшиеся от прошлых вызовов.
    """

    def __init__(self, rules: ProjectionRules) -> None:
        self.rules = rules

    def build_updates(self, record: CandidateRecord) -> tuple[str, dict[str, Any]]:
        """
        Контракт (вход/выход):
            Вход: CandidateRecord.
            Выход: (state_id, {state_key: value}).
        Ошибки/исключения:
            ValueError, если правило ссылается на атрибут, которого нет у записи.
        """
        if not record.has(self.rules.id_attribute):
            raise ValueError(f"record {record.id} has no attribute '{self.rules.id_attribute}'")
        state_id = str(record.get(self.rules.id_attribute))

        updates: dict[str, Any] = {}
        for item in self.rules.writeback:
            if not record.has(item.attribute):
                raise ValueError(f"record {record.id} has no attribute '{item.attribute}'")
            updates[item.state_key] = record.get(item.attribute)
        return state_id, updates

    def project(
        self,
        record: CandidateRecord,
        state: ResourceState,
        criteria: Mapping[str, Any] | None = None,
        criteria_keys: Iterable[str] = (),
    ) -> ResourceState:
        """
        Контракт (вход/выход):
            criteria: заданные критерии вызова, пишутся в состояние как есть.
            criteria_keys: все поля критериев типа lookup; незаданные и не
                заполняемые проекцией удаляются из состояния.
        """
        state_id, updates = self.build_updates(record)
        values = dict(criteria or {})
        values.update(updates)
        stale = [key for key in criteria_keys if key not in values]
        state.apply(state_id, values, remove=stale)
        return state


__all__ = ["ResultProjector"]
