from __future__ import annotations

from decs_provider.domain.criteria import CriteriaField, CriteriaSchema, FieldKind
from decs_provider.domain.lookup_spec import LookupSpec
from decs_provider.domain.projection.rules import ProjectionRules, WritebackField
from decs_provider.domain.records import RecordField, RecordSchema
from decs_provider.domain.resolution.rules import NAME_RULE, MatchRule

LOOKUP_TYPE = "image"
IMAGES_LIST_API = "/restmachine/cloudapi/images/list"

CRITERIA_SCHEMA = CriteriaSchema(
    lookup_type=LOOKUP_TYPE,
    fields=(
        CriteriaField(
            name="name",
            kind=FieldKind.STRING,
            required=True,
            max_length=128,
            description="Name of the OS image to find. This parameter is case sensitive.",
        ),
        CriteriaField(
            name="pool",
            kind=FieldKind.STRING,
            max_length=64,
            description="Name of the pool, where the OS image should be found.",
        ),
        CriteriaField(
            name="sep_id",
            kind=FieldKind.POSITIVE_INT,
            description="ID of the SEP, where the OS image should be found.",
        ),
        CriteriaField(
            name="tenant_id",
            kind=FieldKind.POSITIVE_INT,
            description="ID of the tenant to limit OS image search to.",
        ),
        CriteriaField(
            name="rgid",
            kind=FieldKind.POSITIVE_INT,
            description="ID of the resource group to limit image search to.",
        ),
    ),
)

RECORD_SCHEMA = RecordSchema(
    fields=(
        # Отсутствующие или null pool/sepid декодируются нулевыми значениями.
        RecordField(attribute="pool", json_key="pool", value_type=str, required=False, default=""),
        RecordField(attribute="sep_id", json_key="sepid", value_type=int, required=False, default=0),
        RecordField(attribute="status", json_key="status", value_type=str, required=False),
        RecordField(attribute="type", json_key="type", value_type=str, required=False),
        RecordField(attribute="account_id", json_key="accountId", value_type=int, required=False),
        RecordField(attribute="description", json_key="description", value_type=str, required=False),
    )
)


def make_image_spec() -> LookupSpec:
    """
    Назначение:
        Спецификация lookup образа ОС: имя + необязательные pool/SEP,
        предфильтрация по tenant (accountId) и resource group (cloudspaceId).
    """
    return LookupSpec(
        lookup_type=LOOKUP_TYPE,
        noun="OS Image",
        api_path=IMAGES_LIST_API,
        criteria_schema=CRITERIA_SCHEMA,
        record_schema=RECORD_SCHEMA,
        match_rules=(
            NAME_RULE,
            MatchRule(criterion="pool", attribute="pool"),
            MatchRule(criterion="sep_id", attribute="sep_id"),
        ),
        projection=ProjectionRules(
            writeback=(
                WritebackField(state_key="sep_id", attribute="sep_id"),
                WritebackField(state_key="pool", attribute="pool"),
            ),
        ),
        scope_params={"tenant_id": "accountId", "rgid": "cloudspaceId"},
    )
