from __future__ import annotations

import pytest

from decs_provider.domain.criteria import CriteriaField, CriteriaSchema, FieldKind, build_criteria
from decs_provider.domain.exceptions import ValidationError
from decs_provider.lookups.image.spec import CRITERIA_SCHEMA


def test_name_only_criteria_leaves_optional_fields_unset():
    criteria = build_criteria(CRITERIA_SCHEMA, {"name": "ubuntu-20.04"})

    assert criteria.name == "ubuntu-20.04"
    assert criteria.is_set("name")
    for field in ("pool", "sep_id", "tenant_id", "rgid"):
        assert not criteria.is_set(field)
    assert criteria.pool is None
    assert criteria.sep_id is None


def test_all_fields_are_kept():
    criteria = build_criteria(
        CRITERIA_SCHEMA,
        {"name": "centos", "pool": "ssd", "sep_id": 7, "tenant_id": 3, "rgid": 11},
    )

    assert criteria.as_dict() == {"name": "centos", "pool": "ssd", "sep_id": 7, "tenant_id": 3, "rgid": 11}
    assert criteria.tenant_id == 3
    assert criteria.rgid == 11


def test_zero_and_empty_values_mean_unset():
    criteria = build_criteria(
        CRITERIA_SCHEMA,
        {"name": "centos", "pool": "", "sep_id": 0, "tenant_id": None, "rgid": 0},
    )

    assert criteria.as_dict() == {"name": "centos"}


@pytest.mark.parametrize("name", ["", None])
def test_empty_name_is_rejected(name):
    with pytest.raises(ValidationError) as exc:
        build_criteria(CRITERIA_SCHEMA, {"name": name})

    assert exc.value.fields == ["name"]
    assert exc.value.code == "VALIDATION_ERROR"


def test_missing_name_is_rejected():
    with pytest.raises(ValidationError) as exc:
        build_criteria(CRITERIA_SCHEMA, {"pool": "ssd"})

    assert exc.value.fields == ["name"]


def test_length_bounds():
    build_criteria(CRITERIA_SCHEMA, {"name": "x" * 128, "pool": "p" * 64})

    with pytest.raises(ValidationError) as exc:
        build_criteria(CRITERIA_SCHEMA, {"name": "x" * 129, "pool": "p" * 65})

    assert exc.value.fields == ["name", "pool"]
    assert "between 1 and 128" in str(exc.value)


def test_negative_ids_are_rejected():
    with pytest.raises(ValidationError) as exc:
        build_criteria(CRITERIA_SCHEMA, {"name": "centos", "sep_id": -1, "tenant_id": -5})

    assert exc.value.fields == ["sep_id", "tenant_id"]
    assert "at least 1" in exc.value.message


def test_wrong_types_are_rejected():
    with pytest.raises(ValidationError) as exc:
        build_criteria(CRITERIA_SCHEMA, {"name": 42, "sep_id": "7", "rgid": True})

    assert exc.value.fields == ["name", "sep_id", "rgid"]


def test_unknown_field_is_rejected():
    with pytest.raises(ValidationError) as exc:
        build_criteria(CRITERIA_SCHEMA, {"name": "centos", "flavor": "big"})

    assert exc.value.fields == ["flavor"]
    assert exc.value.to_dict()["category"] == "validation"


def test_schema_requires_name_field():
    with pytest.raises(ValueError):
        CriteriaSchema(
            lookup_type="broken",
            fields=(CriteriaField(name="pool", kind=FieldKind.STRING),),
        )
