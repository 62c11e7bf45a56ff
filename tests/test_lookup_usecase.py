from __future__ import annotations

import pytest

from decs_provider.domain.exceptions import (
    AmbiguousMatchError,
    DecodeError,
    NotFoundError,
    TransportError,
    UnknownLookupTypeError,
    ValidationError,
)
from decs_provider.domain.records import CandidateRecord
from decs_provider.domain.resolution.rules import MatchPolicy
from decs_provider.domain.state import ResourceState
from decs_provider.lookups.registry import build_default_registry
from decs_provider.usecases.lookup_usecase import LookupUseCase


class FakeCatalog:
    def __init__(self, candidates: list[CandidateRecord] | None = None, error: Exception | None = None) -> None:
        self.candidates = candidates or []
        self.error = error
        self.calls: list[tuple[str, dict[str, str]]] = []

    def list_candidates(self, spec, scope):
        self.calls.append((spec.lookup_type, dict(scope)))
        if self.error is not None:
            raise self.error
        return list(self.candidates)


def image(record_id: int, name: str, pool: str, sep_id: int) -> CandidateRecord:
    return CandidateRecord(id=record_id, name=name, attributes={"pool": pool, "sep_id": sep_id})


CATALOG = [
    image(1, "A", "p1", 1),
    image(2, "A", "p2", 2),
    image(3, "centos", "ssd", 7),
]


def make_usecase(catalog: FakeCatalog, policy: MatchPolicy = MatchPolicy.FIRST_MATCH) -> LookupUseCase:
    return LookupUseCase(build_default_registry(), catalog, policy=policy, run_id="test-run")


def test_lookup_writes_back_resolved_fields():
    catalog = FakeCatalog(CATALOG)

    state = make_usecase(catalog).run("image", {"name": "centos"})

    assert state.id == "3"
    assert state.get("sep_id") == 7
    assert state.get("pool") == "ssd"
    assert catalog.calls == [("image", {})]


def test_first_match_and_disambiguation():
    catalog = FakeCatalog(CATALOG)
    usecase = make_usecase(catalog)

    assert usecase.run("image", {"name": "A"}).get("pool") == "p1"
    assert usecase.run("image", {"name": "A", "pool": "p2"}).id == "2"


def test_scope_params_only_for_set_criteria():
    catalog = FakeCatalog(CATALOG)
    usecase = make_usecase(catalog)

    usecase.run("image", {"name": "A", "tenant_id": 3})
    usecase.run("image", {"name": "A", "tenant_id": 3, "rgid": 11})
    usecase.run("image", {"name": "A", "rgid": 0})

    assert [scope for _, scope in catalog.calls] == [
        {"accountId": "3"},
        {"accountId": "3", "cloudspaceId": "11"},
        {},
    ]


def test_validation_happens_before_catalog_access():
    catalog = FakeCatalog(CATALOG)

    with pytest.raises(ValidationError):
        make_usecase(catalog).run("image", {"name": ""})

    assert catalog.calls == []


def test_not_found_leaves_state_untouched():
    catalog = FakeCatalog(CATALOG)
    state = ResourceState(id="1", attributes={"name": "Z", "pool": "p1"})

    with pytest.raises(NotFoundError) as exc:
        make_usecase(catalog).run("image", {"name": "Z"}, state)

    assert "Z" in str(exc.value)
    assert state == ResourceState(id="1", attributes={"name": "Z", "pool": "p1"})


@pytest.mark.parametrize(
    "error",
    [
        TransportError("HTTP 500", status_code=500, body="boom"),
        DecodeError("Invalid JSON response"),
    ],
)
def test_catalog_errors_surface_unchanged(error):
    catalog = FakeCatalog(error=error)

    with pytest.raises(type(error)) as exc:
        make_usecase(catalog).run("image", {"name": "A"})

    assert exc.value is error
    assert len(catalog.calls) == 1


def test_repeated_lookup_writes_identical_state():
    catalog = FakeCatalog(CATALOG)
    usecase = make_usecase(catalog)

    first = usecase.run("image", {"name": "A", "sep_id": 2}).to_dict()
    second = usecase.run("image", {"name": "A", "sep_id": 2}).to_dict()

    assert first == second
    assert first == {"id": "2", "attributes": {"name": "A", "sep_id": 2, "pool": "p2"}}


def test_existing_state_is_updated_in_place():
    catalog = FakeCatalog(CATALOG)
    state = ResourceState(attributes={"name": "centos"})

    result = make_usecase(catalog).run("image", {"name": "centos"}, state)

    assert result is state
    assert state.to_dict() == {"id": "3", "attributes": {"name": "centos", "sep_id": 7, "pool": "ssd"}}


def test_strict_policy_through_usecase():
    catalog = FakeCatalog(CATALOG)

    with pytest.raises(AmbiguousMatchError):
        make_usecase(catalog, MatchPolicy.STRICT).run("image", {"name": "A"})


def test_unknown_lookup_type():
    catalog = FakeCatalog(CATALOG)

    with pytest.raises(UnknownLookupTypeError) as exc:
        make_usecase(catalog).run("vm", {"name": "A"})

    assert exc.value.code == "UNKNOWN_LOOKUP_TYPE"
    assert catalog.calls == []


def test_resource_group_lookup_writes_back_tenant():
    catalog = FakeCatalog([CandidateRecord(id=77, name="rg-main", attributes={"account_id": 5})])

    state = make_usecase(catalog).run("resource_group", {"name": "rg-main"})

    assert state.to_dict() == {"id": "77", "attributes": {"name": "rg-main", "tenant_id": 5}}


def test_reused_state_reflects_current_criteria():
    catalog = FakeCatalog(CATALOG)
    usecase = make_usecase(catalog)
    state = usecase.run("image", {"name": "A", "tenant_id": 5})

    usecase.run("image", {"name": "centos"}, state)

    assert state.to_dict() == {"id": "3", "attributes": {"name": "centos", "sep_id": 7, "pool": "ssd"}}


def test_reused_state_keeps_unrelated_attributes():
    catalog = FakeCatalog(CATALOG)
    state = ResourceState(id="1", attributes={"name": "A", "rgid": 11, "note": "kept"})

    make_usecase(catalog).run("image", {"name": "A", "pool": "p2"}, state)

    assert state.to_dict() == {
        "id": "2",
        "attributes": {"name": "A", "pool": "p2", "sep_id": 2, "note": "kept"},
    }


def test_decoded_records_without_pool_are_skipped_by_pool_rule():
    catalog = FakeCatalog(
        [
            CandidateRecord(id=1, name="centos", attributes={"pool": "", "sep_id": 0}),
            image(3, "centos", "ssd", 7),
        ]
    )

    state = make_usecase(catalog).run("image", {"name": "centos", "pool": "ssd"})

    assert state.id == "3"
