"""
exoscale_security_group: create, read and delete a security group.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Union

from sgprovider import schema
from sgprovider.client import ComputeClient
from sgprovider.config import ProviderContext
from sgprovider.errors import ApiError, SecurityGroupNotFound, ValidationError
from sgprovider.models.compute import SecurityGroup, SecurityGroupProfile
from sgprovider.models.state import ResourceState
from sgprovider.schema import Field, FieldType

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "exoscale_security_group"

SCHEMA: schema.Schema = {
    "name": Field(FieldType.STRING, required=True, force_new=True,
                  description="Name of the security group."),
    "description": Field(FieldType.STRING, optional=True, force_new=True,
                         description="Free-form description."),
    "account": Field(FieldType.STRING, computed=True,
                     description="Account owning the group."),
    "virtual_machine_count": Field(FieldType.INT, computed=True,
                                   description="Number of attached virtual machines."),
    "virtual_machine_ids": Field(FieldType.SET, computed=True,
                                 description="Identifiers of attached virtual machines."),
}


@dataclass(frozen=True)
class GroupId:
    id: str


@dataclass(frozen=True)
class GroupName:
    name: str


GroupRef = Union[GroupId, GroupName]


@dataclass(frozen=True)
class SecurityGroupConfig:
    name: str
    description: str = ""

    @classmethod
    def from_attributes(cls, attributes: Dict[str, Any]) -> "SecurityGroupConfig":
        attrs = schema.normalize(SCHEMA, attributes)
        errors = schema.validate(SCHEMA, attrs) + schema.unresolved(attrs)
        if errors:
            raise ValidationError(RESOURCE_TYPE, errors)
        return cls(name=attrs["name"], description=attrs.get("description") or "")


def lookup(client: ComputeClient, ref: GroupRef) -> SecurityGroup:
    """
    Resolve a group reference to the full group.

    Ids are fetched directly and any API error propagates. Names are matched
    exactly against the groups the API lists; no match raises
    SecurityGroupNotFound.
    """
    if isinstance(ref, GroupId):
        logger.debug("fetching security group id=%s", ref.id)
        return client.get_security_group_by_id(ref.id)

    logger.debug("looking up security group name=%s", ref.name)
    for group in client.list_security_groups(name=ref.name):
        if group.name == ref.name:
            return group
    raise SecurityGroupNotFound(ref.name)


def _apply(group: SecurityGroup, state: ResourceState) -> None:
    state.id = group.id
    state.set("name", group.name)
    state.set("description", group.description)
    state.set("account", group.account)
    state.set("virtual_machine_count", group.virtual_machine_count)
    state.set("virtual_machine_ids", set(group.virtual_machine_ids))


def create(config: SecurityGroupConfig, ctx: ProviderContext) -> ResourceState:
    profile = SecurityGroupProfile(name=config.name, description=config.description)
    logger.debug("creating security group %s", profile.to_dict())
    group = ctx.client.create_security_group(profile)

    state = ResourceState()
    _apply(group, state)
    return state


def read(state: ResourceState, ctx: ProviderContext) -> None:
    try:
        group = ctx.client.get_security_group_by_id(state.id)
    except ApiError as exc:
        # The API does not tell a deleted group apart from a failed call, so
        # every error is taken as "gone" and the host will plan a re-create.
        logger.warning(
            "security group %s could not be read, dropping it from state: %s",
            state.id, exc,
        )
        state.clear()
        return

    _apply(group, state)


def delete(state: ResourceState, ctx: ProviderContext) -> None:
    name = state.get("name", "")
    logger.debug("deleting security group name=%s", name)
    ctx.client.delete_security_group(name)
