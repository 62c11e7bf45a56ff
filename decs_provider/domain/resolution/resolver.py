from __future__ import annotations

import logging
from typing import Iterable

from decs_provider.domain.criteria import LookupCriteria
from decs_provider.domain.exceptions import AmbiguousMatchError, NotFoundError
from decs_provider.domain.lookup_spec import LookupSpec
from decs_provider.domain.records import CandidateRecord
from decs_provider.domain.resolution.rules import MatchPolicy, MatchRule
from decs_provider.logging_setup import logEvent

_MISSING = object()


class Resolver:
    """
    Назначение/ответственность:
        Детерминированно выбирает единственного кандидата, удовлетворяющего всем
        заданным критериям, либо объясняет, почему такого нет.

    Алгоритм:
        - Кандидаты просматриваются в порядке, в котором их вернул каталог.
        - Правила применяются по порядку; правило активно, только если критерий задан
          (name задан всегда). Первое несовпадение отбрасывает кандидата.
        - FIRST_MATCH: первый выживший кандидат побеждает, просмотр прекращается.
        - STRICT: просматриваются все кандидаты; больше одного выжившего -> AmbiguousMatchError.
        - Нет выживших -> NotFoundError с исходным name.

    Ограничения:
        Ретраев нет; ошибки каталога сюда не доходят и пробрасываются вызывающему.
    """

    def __init__(
        self,
        spec: LookupSpec,
        policy: MatchPolicy = MatchPolicy.FIRST_MATCH,
        *,
        logger: logging.Logger | None = None,
        run_id: str = "-",
    ) -> None:
        self.spec = spec
        self.policy = policy
        self.logger = logger or logging.getLogger(__name__)
        self.run_id = run_id

    def active_rules(self, criteria: LookupCriteria) -> tuple[MatchRule, ...]:
        return tuple(rule for rule in self.spec.match_rules if criteria.is_set(rule.criterion))

    def matches(self, criteria: LookupCriteria, record: CandidateRecord) -> bool:
        return self._matches(self.active_rules(criteria), criteria, record)

    def resolve(self, criteria: LookupCriteria, candidates: Iterable[CandidateRecord]) -> CandidateRecord:
        rules = self.active_rules(criteria)
        matched: list[tuple[int, CandidateRecord]] = []

        for index, record in enumerate(candidates):
            if not self._matches(rules, criteria, record):
                continue
            self._log(
                logging.DEBUG,
                f"index {index}, matched {self.spec.lookup_type} name {record.name!r} id={record.id}",
            )
            matched.append((index, record))
            if self.policy == MatchPolicy.FIRST_MATCH:
                break

        if not matched:
            self._log(logging.INFO, f"no {self.spec.lookup_type} matched name {criteria.name!r}")
            raise NotFoundError(self.spec.lookup_type, criteria.name, noun=self.spec.noun)

        if len(matched) > 1:
            ids = [record.id for _, record in matched]
            self._log(logging.WARNING, f"ambiguous {self.spec.lookup_type} name {criteria.name!r}: ids={ids}")
            raise AmbiguousMatchError(self.spec.lookup_type, criteria.name, ids)

        return matched[0][1]

    def _matches(self, rules: tuple[MatchRule, ...], criteria: LookupCriteria, record: CandidateRecord) -> bool:
        for rule in rules:
            if record.get(rule.attribute, _MISSING) != criteria.get(rule.criterion):
                return False
        return True

    def _log(self, level: int, message: str) -> None:
        logEvent(self.logger, level, self.run_id, "resolve", message)


__all__ = ["Resolver"]
