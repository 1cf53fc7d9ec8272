"""
exoscale_security_group_rule: create, read and delete one ingress or egress
rule of a security group.

Every user-settable attribute forces replacement, so there is no update
handler. Mutually exclusive attributes are folded into tagged unions when the
configuration is built: a rule targets either a ``Cidr`` or a ``PeerGroup``,
and matches either a ``PortRange`` or an ``IcmpSpec``.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from sgprovider import schema
from sgprovider.config import ProviderContext
from sgprovider.errors import NotFoundError, ValidationError
from sgprovider.models.compute import (
    SecurityGroupRule,
    SecurityGroupRuleProfile,
    UserSecurityGroup,
)
from sgprovider.models.state import ResourceState
from sgprovider.resources import security_group
from sgprovider.resources.security_group import GroupId, GroupName, GroupRef
from sgprovider.schema import Field, FieldType

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "exoscale_security_group_rule"


class Direction(str, Enum):
    INGRESS = "ingress"
    EGRESS  = "egress"


class RuleProtocol(str, Enum):
    TCP  = "TCP"
    UDP  = "UDP"
    ICMP = "ICMP"
    AH   = "AH"
    ESP  = "ESP"
    GRE  = "GRE"


_PORT_FIELDS = ("start_port", "end_port", "port")
_ICMP_FIELDS = ("icmp_type", "icmp_code")
_STATE_INT_FIELDS = ("start_port", "end_port", "icmp_type", "icmp_code")

SCHEMA: schema.Schema = {
    "type": Field(
        FieldType.STRING, required=True, force_new=True,
        validate=schema.string_in_slice([d.value for d in Direction], ignore_case=True),
        description="Traffic direction: ingress or egress.",
    ),
    "security_group_id": Field(
        FieldType.STRING, optional=True, computed=True, force_new=True,
        conflicts_with=("security_group_name",),
        at_least_one_of=("security_group_name",),
        description="Id of the owning security group.",
    ),
    "security_group_name": Field(
        FieldType.STRING, optional=True, computed=True, force_new=True,
        conflicts_with=("security_group_id",),
        at_least_one_of=("security_group_id",),
        description="Name of the owning security group.",
    ),
    "cidr": Field(
        FieldType.STRING, optional=True, force_new=True,
        validate=schema.cidr_network(0, 32),
        conflicts_with=("user_security_group",),
        description="Network the rule applies to.",
    ),
    "protocol": Field(
        FieldType.STRING, optional=True, force_new=True, default=RuleProtocol.TCP.value,
        validate=schema.string_in_slice([p.value for p in RuleProtocol], ignore_case=True),
        description="IP protocol.",
    ),
    "start_port": Field(
        FieldType.INT, optional=True, force_new=True,
        validate=schema.int_between(1, 65535),
        conflicts_with=_ICMP_FIELDS,
        description="First port of the range.",
    ),
    "end_port": Field(
        FieldType.INT, optional=True, force_new=True,
        validate=schema.int_between(1, 65535),
        conflicts_with=_ICMP_FIELDS,
        description="Last port of the range.",
    ),
    "port": Field(
        FieldType.INT, optional=True, force_new=True,
        validate=schema.int_between(1, 65535),
        conflicts_with=_ICMP_FIELDS,
        description="Single port; overrides start_port and end_port.",
    ),
    "icmp_type": Field(
        FieldType.INT, optional=True, force_new=True,
        validate=schema.int_between(0, 255),
        conflicts_with=_PORT_FIELDS,
        description="ICMP message type.",
    ),
    "icmp_code": Field(
        FieldType.INT, optional=True, force_new=True,
        validate=schema.int_between(0, 255),
        conflicts_with=_PORT_FIELDS,
        description="ICMP message code.",
    ),
    "user_security_group": Field(
        FieldType.STRING, optional=True, force_new=True,
        conflicts_with=("cidr",),
        description="Name of a peer security group allowed by the rule.",
    ),
}


@dataclass(frozen=True)
class Cidr:
    network: str


@dataclass(frozen=True)
class PeerGroup:
    name: str


@dataclass(frozen=True)
class PortRange:
    start: Optional[int] = None
    end: Optional[int] = None


@dataclass(frozen=True)
class IcmpSpec:
    type: Optional[int] = None
    code: Optional[int] = None


RuleTarget = Union[Cidr, PeerGroup]
PortSpec = Union[PortRange, IcmpSpec]


@dataclass(frozen=True)
class SecurityGroupRuleConfig:
    direction: Direction
    security_group: GroupRef
    protocol: RuleProtocol = RuleProtocol.TCP
    target: Optional[RuleTarget] = None
    ports: Optional[PortSpec] = None
    port: Optional[int] = None

    @classmethod
    def from_attributes(cls, attributes: Dict[str, Any]) -> "SecurityGroupRuleConfig":
        attrs = schema.normalize(SCHEMA, attributes)
        errors = schema.validate(SCHEMA, attrs) + schema.unresolved(attrs)
        if errors:
            raise ValidationError(RESOURCE_TYPE, errors)

        if attrs.get("security_group_id"):
            group: GroupRef = GroupId(attrs["security_group_id"])
        else:
            group = GroupName(attrs["security_group_name"])

        target: Optional[RuleTarget] = None
        if schema.is_set(attrs.get("cidr")):
            target = Cidr(attrs["cidr"])
        elif schema.is_set(attrs.get("user_security_group")):
            target = PeerGroup(attrs["user_security_group"])

        ports: Optional[PortSpec] = None
        if any(schema.is_set(attrs.get(k)) for k in _ICMP_FIELDS):
            ports = IcmpSpec(_int_or_none(attrs, "icmp_type"), _int_or_none(attrs, "icmp_code"))
        elif any(schema.is_set(attrs.get(k)) for k in ("start_port", "end_port")):
            ports = PortRange(_int_or_none(attrs, "start_port"), _int_or_none(attrs, "end_port"))

        return cls(
            direction=Direction(attrs["type"].lower()),
            security_group=group,
            protocol=RuleProtocol(attrs["protocol"].upper()),
            target=target,
            ports=ports,
            port=_int_or_none(attrs, "port"),
        )


def _int_or_none(attrs: Dict[str, Any], key: str) -> Optional[int]:
    val = attrs.get(key)
    return val if schema.is_set(val) else None


def planned_attributes(attributes: Dict[str, Any]) -> Dict[str, Any]:
    """
    The attributes a declaration leaves in state once created: direction and
    protocol case-folded, a single port expanded into the range, and port or
    ICMP fields the declaration omits read back as the API's 0.
    """
    attrs = schema.normalize(SCHEMA, attributes)
    for key, fold in (("type", str.lower), ("protocol", str.upper)):
        val = attrs.get(key)
        if isinstance(val, str) and not schema.is_unknown(val):
            attrs[key] = fold(val)

    port = attrs.get("port")
    if isinstance(port, int) and port > 0:
        attrs["start_port"] = attrs["end_port"] = port
    for key in _STATE_INT_FIELDS:
        if not schema.is_set(attrs.get(key)):
            attrs[key] = 0
    return attrs


def _build_profile(config: SecurityGroupRuleConfig, group_id: str) -> SecurityGroupRuleProfile:
    profile = SecurityGroupRuleProfile(
        security_group_id=group_id,
        protocol=config.protocol.value,
    )
    if isinstance(config.target, Cidr):
        profile.cidr = config.target.network

    ports = config.ports
    if config.port is not None and config.port > 0:
        ports = PortRange(config.port, config.port)

    if isinstance(ports, PortRange):
        profile.start_port = ports.start
        profile.end_port = ports.end
    elif isinstance(ports, IcmpSpec):
        profile.icmp_type = ports.type
        profile.icmp_code = ports.code
    return profile


def _apply(rule: SecurityGroupRule, state: ResourceState) -> None:
    state.set("cidr", rule.cidr)
    state.set("start_port", rule.start_port)
    state.set("end_port", rule.end_port)
    state.set("icmp_type", rule.icmp_type)
    state.set("icmp_code", rule.icmp_code)


def _is_ingress(state: ResourceState) -> bool:
    return str(state.get("type", "")).lower() == Direction.INGRESS.value


def create(config: SecurityGroupRuleConfig, ctx: ProviderContext) -> ResourceState:
    client = ctx.client
    group = security_group.lookup(client, config.security_group)
    profile = _build_profile(config, group.id)

    if isinstance(config.target, PeerGroup):
        # One peer group per rule. The API takes a list but a declarative
        # resource linked to many others is hard to keep consistent.
        peer = security_group.lookup(client, GroupName(config.target.name))
        profile.user_security_group_list = [
            UserSecurityGroup(account=peer.account, group=peer.name),
        ]

    logger.debug("creating %s rule %s", config.direction.value, profile.to_dict())
    if config.direction == Direction.INGRESS:
        rule = client.create_ingress_rule(profile, ctx.async_)
    else:
        rule = client.create_egress_rule(profile, ctx.async_)

    state = ResourceState(id=rule.id)
    state.set("type", config.direction.value)
    state.set("security_group_id", group.id)
    state.set("security_group_name", group.name)
    state.set("protocol", config.protocol.value)
    if isinstance(config.target, PeerGroup):
        state.set("user_security_group", config.target.name)
    if config.port is not None:
        state.set("port", config.port)
    _apply(rule, state)
    return state


def read(state: ResourceState, ctx: ProviderContext) -> None:
    """Refresh from the owning group; clears state when the rule or the whole group is gone."""
    group_id = state.get("security_group_id", "")
    if not group_id:
        return

    try:
        group = security_group.lookup(ctx.client, GroupId(group_id))
    except NotFoundError as exc:
        # A rule cannot outlive its group.
        logger.warning("security group %s is gone, dropping rule %s: %s", group_id, state.id, exc)
        state.clear()
        return

    logger.debug("security group %s", group.to_dict())
    rules: List[SecurityGroupRule] = group.ingress_rules if _is_ingress(state) else group.egress_rules

    for rule in rules:
        if rule.id == state.id:
            _apply(rule, state)
            return

    logger.warning("rule %s no longer exists in security group %s", state.id, group_id)
    state.clear()


def delete(state: ResourceState, ctx: ProviderContext) -> None:
    if _is_ingress(state):
        logger.debug("deleting ingress rule id=%s", state.id)
        ctx.client.delete_ingress_rule(state.id, ctx.async_)
        return
    logger.debug("deleting egress rule id=%s", state.id)
    ctx.client.delete_egress_rule(state.id, ctx.async_)
