from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class UserSecurityGroup:
    account: str
    group: str

    def to_dict(self) -> dict:
        return {"account": self.account, "group": self.group}


@dataclass
class SecurityGroupRule:
    id: str
    cidr: str = ""
    protocol: str = ""
    start_port: int = 0
    end_port: int = 0
    icmp_type: int = 0
    icmp_code: int = 0
    user_security_group_list: List[UserSecurityGroup] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cidr": self.cidr,
            "protocol": self.protocol,
            "start_port": self.start_port,
            "end_port": self.end_port,
            "icmp_type": self.icmp_type,
            "icmp_code": self.icmp_code,
            "user_security_group_list": [u.to_dict() for u in self.user_security_group_list],
        }


@dataclass
class SecurityGroup:
    id: str
    name: str
    description: str = ""
    account: str = ""
    virtual_machine_count: int = 0
    virtual_machine_ids: List[str] = field(default_factory=list)
    ingress_rules: List[SecurityGroupRule] = field(default_factory=list)
    egress_rules: List[SecurityGroupRule] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "account": self.account,
            "virtual_machine_count": self.virtual_machine_count,
            "virtual_machine_ids": list(self.virtual_machine_ids),
            "ingress_rules": [r.to_dict() for r in self.ingress_rules],
            "egress_rules": [r.to_dict() for r in self.egress_rules],
        }


@dataclass
class SecurityGroupProfile:
    name: str
    description: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "description": self.description}


@dataclass
class SecurityGroupRuleProfile:
    security_group_id: str
    protocol: str
    cidr: str = ""
    start_port: Optional[int] = None
    end_port: Optional[int] = None
    icmp_type: Optional[int] = None
    icmp_code: Optional[int] = None
    # The API accepts a list, rules built here carry at most one entry.
    user_security_group_list: List[UserSecurityGroup] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "security_group_id": self.security_group_id,
            "protocol": self.protocol,
            "cidr": self.cidr,
            "start_port": self.start_port,
            "end_port": self.end_port,
            "icmp_type": self.icmp_type,
            "icmp_code": self.icmp_code,
            "user_security_group_list": [u.to_dict() for u in self.user_security_group_list],
        }
