"""
Compute API surface the resource handlers depend on.

The client itself lives outside this package. Implementations report any
failed call as ``ApiError`` and an unknown id as ``NotFoundError``.
"""
from typing import List, Optional, Protocol

from sgprovider.models.compute import (
    SecurityGroup,
    SecurityGroupProfile,
    SecurityGroupRule,
    SecurityGroupRuleProfile,
)


class ComputeClient(Protocol):
    def create_security_group(self, profile: SecurityGroupProfile) -> SecurityGroup:
        ...

    def get_security_group_by_id(self, group_id: str) -> SecurityGroup:
        ...

    def list_security_groups(self, name: Optional[str] = None) -> List[SecurityGroup]:
        ...

    def delete_security_group(self, name: str) -> None:
        ...

    def create_ingress_rule(
        self, profile: SecurityGroupRuleProfile, async_: bool
    ) -> SecurityGroupRule:
        ...

    def create_egress_rule(
        self, profile: SecurityGroupRuleProfile, async_: bool
    ) -> SecurityGroupRule:
        ...

    def delete_ingress_rule(self, rule_id: str, async_: bool) -> None:
        ...

    def delete_egress_rule(self, rule_id: str, async_: bool) -> None:
        ...
