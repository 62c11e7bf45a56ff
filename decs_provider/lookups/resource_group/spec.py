from __future__ import annotations

from decs_provider.domain.criteria import CriteriaField, CriteriaSchema, FieldKind
from decs_provider.domain.lookup_spec import LookupSpec
from decs_provider.domain.projection.rules import ProjectionRules, WritebackField
from decs_provider.domain.records import RecordField, RecordSchema
from decs_provider.domain.resolution.rules import NAME_RULE, MatchRule

LOOKUP_TYPE = "resource_group"
RESGROUP_LIST_API = "/restmachine/cloudapi/cloudspaces/list"


def make_resource_group_spec() -> LookupSpec:
    """
    Назначение:
        Спецификация lookup resource group (cloudspace) по имени в рамках tenant.
    """
    return LookupSpec(
        lookup_type=LOOKUP_TYPE,
        noun="resource group",
        api_path=RESGROUP_LIST_API,
        criteria_schema=CriteriaSchema(
            lookup_type=LOOKUP_TYPE,
            fields=(
                CriteriaField(
                    name="name",
                    kind=FieldKind.STRING,
                    required=True,
                    max_length=128,
                    description="Name of the resource group. This parameter is case sensitive.",
                ),
                CriteriaField(
                    name="tenant_id",
                    kind=FieldKind.POSITIVE_INT,
                    description="ID of the tenant, where the resource group should be found.",
                ),
            ),
        ),
        record_schema=RecordSchema(
            fields=(
                RecordField(attribute="account_id", json_key="accountId", value_type=int),
                RecordField(attribute="account_name", json_key="accountName", value_type=str, required=False),
                RecordField(attribute="location", json_key="location", value_type=str, required=False),
                RecordField(attribute="status", json_key="status", value_type=str, required=False),
            )
        ),
        match_rules=(
            NAME_RULE,
            MatchRule(criterion="tenant_id", attribute="account_id"),
        ),
        projection=ProjectionRules(
            writeback=(WritebackField(state_key="tenant_id", attribute="account_id"),),
        ),
        scope_params={"tenant_id": "accountId"},
    )
