"""
Shared fixtures: an in-memory compute API that records every call.
"""
import itertools
from typing import Dict, List, Optional

import pytest

from sgprovider.config import ProviderContext
from sgprovider.errors import ApiError, NotFoundError
from sgprovider.models.compute import (
    SecurityGroup,
    SecurityGroupProfile,
    SecurityGroupRule,
    SecurityGroupRuleProfile,
)


class FakeComputeClient:
    def __init__(self, account: str = "ops@example.com"):
        self.account = account
        self.groups: Dict[str, SecurityGroup] = {}
        self.calls: List[tuple] = []
        self.fail_next: Optional[Exception] = None
        self._ids = itertools.count(1)

    def _record(self, *call) -> None:
        self.calls.append(call)
        if self.fail_next is not None:
            exc, self.fail_next = self.fail_next, None
            raise exc

    def call_names(self) -> List[str]:
        return [c[0] for c in self.calls]

    def add_group(self, name: str, **kwargs) -> SecurityGroup:
        group = SecurityGroup(
            id=f"sg-{next(self._ids)}", name=name, account=self.account, **kwargs
        )
        self.groups[group.id] = group
        return group

    # ---- ComputeClient ----------------------------------------------------

    def create_security_group(self, profile: SecurityGroupProfile) -> SecurityGroup:
        self._record("create_security_group", profile)
        return self.add_group(profile.name, description=profile.description)

    def get_security_group_by_id(self, group_id: str) -> SecurityGroup:
        self._record("get_security_group_by_id", group_id)
        try:
            return self.groups[group_id]
        except KeyError:
            raise NotFoundError(f"security group {group_id} not found") from None

    def list_security_groups(self, name: Optional[str] = None) -> List[SecurityGroup]:
        self._record("list_security_groups", name)
        return [g for g in self.groups.values() if name is None or g.name == name]

    def delete_security_group(self, name: str) -> None:
        self._record("delete_security_group", name)
        for gid, group in list(self.groups.items()):
            if group.name == name:
                del self.groups[gid]
                return
        raise ApiError(f"security group {name} not found")

    def _create_rule(self, kind: str, profile: SecurityGroupRuleProfile) -> SecurityGroupRule:
        group = self.groups[profile.security_group_id]
        rule = SecurityGroupRule(
            id=f"rule-{next(self._ids)}",
            cidr=profile.cidr,
            protocol=profile.protocol,
            start_port=profile.start_port or 0,
            end_port=profile.end_port or 0,
            icmp_type=profile.icmp_type or 0,
            icmp_code=profile.icmp_code or 0,
            user_security_group_list=list(profile.user_security_group_list),
        )
        if kind == "ingress":
            group.ingress_rules.append(rule)
        else:
            group.egress_rules.append(rule)
        return rule

    def create_ingress_rule(self, profile: SecurityGroupRuleProfile, async_: bool) -> SecurityGroupRule:
        self._record("create_ingress_rule", profile, async_)
        return self._create_rule("ingress", profile)

    def create_egress_rule(self, profile: SecurityGroupRuleProfile, async_: bool) -> SecurityGroupRule:
        self._record("create_egress_rule", profile, async_)
        return self._create_rule("egress", profile)

    def _delete_rule(self, attr: str, rule_id: str) -> None:
        for group in self.groups.values():
            rules = getattr(group, attr)
            for rule in rules:
                if rule.id == rule_id:
                    rules.remove(rule)
                    return
        raise ApiError(f"rule {rule_id} not found")

    def delete_ingress_rule(self, rule_id: str, async_: bool) -> None:
        self._record("delete_ingress_rule", rule_id, async_)
        self._delete_rule("ingress_rules", rule_id)

    def delete_egress_rule(self, rule_id: str, async_: bool) -> None:
        self._record("delete_egress_rule", rule_id, async_)
        self._delete_rule("egress_rules", rule_id)


@pytest.fixture
def client():
    return FakeComputeClient()


@pytest.fixture
def ctx(client):
    return ProviderContext(client=client, async_=False)


@pytest.fixture
def web_group(client):
    return client.add_group(
        "web",
        description="web servers",
        virtual_machine_count=2,
        virtual_machine_ids=["vm-1", "vm-2"],
    )
