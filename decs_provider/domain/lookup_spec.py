from __future__ import annotations

from dataclasses import dataclass, field

from decs_provider.domain.criteria import CriteriaSchema, LookupCriteria
from decs_provider.domain.projection.rules import ProjectionRules
from decs_provider.domain.records import RecordSchema
from decs_provider.domain.resolution.rules import NAME_RULE, MatchRule


@dataclass(frozen=True)
class LookupSpec:
    """
    Назначение/ответственность:
        Полное описание одного типа lookup: критерии, запрос к каталогу,
        декодирование, правила сопоставления и обратной записи.
    Инварианты/гарантии:
        - match_rules начинаются с правила по name.
        - scope_params и match_rules ссылаются только на поля criteria_schema.
    """

    lookup_type: str
    noun: str
    api_path: str
    criteria_schema: CriteriaSchema
    record_schema: RecordSchema
    match_rules: tuple[MatchRule, ...]
    projection: ProjectionRules
    scope_params: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.match_rules or self.match_rules[0] != NAME_RULE:
            raise ValueError(f"{self.lookup_type}: first match rule must compare name")
        known = set(self.criteria_schema.field_names())
        for rule in self.match_rules:
            if rule.criterion not in known:
                raise ValueError(f"{self.lookup_type}: match rule on unknown criterion {rule.criterion}")
        for criterion in self.scope_params:
            if criterion not in known:
                raise ValueError(f"{self.lookup_type}: scope on unknown criterion {criterion}")

    def build_scope(self, criteria: LookupCriteria) -> dict[str, str]:
        """
        Назначение:
            Формирует query-параметры предфильтрации на стороне сервера.
        Контракт:
            - Параметр присутствует только если соответствующий критерий задан.
        """
        scope: dict[str, str] = {}
        for criterion, param in self.scope_params.items():
            if criteria.is_set(criterion):
                scope[param] = str(criteria.get(criterion))
        return scope


__all__ = ["LookupSpec"]
