"""
Entry points the host orchestrator calls, dispatched by resource type.

Attributes are validated and turned into a typed configuration before any
handler runs, so an invalid declaration never reaches the compute API.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from sgprovider import schema
from sgprovider.config import ProviderContext
from sgprovider.errors import UnknownResourceType
from sgprovider.models.state import ResourceState
from sgprovider.resources import security_group, security_group_rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceType:
    name: str
    schema: schema.Schema
    config_from: Callable[[Dict[str, Any]], Any]
    create: Callable[[Any, ProviderContext], ResourceState]
    read: Callable[[ResourceState, ProviderContext], None]
    delete: Callable[[ResourceState, ProviderContext], None]
    # Attributes as create leaves them in state; defaults to schema.normalize.
    planned: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None

    def planned_attributes(self, attributes: Dict[str, Any]) -> Dict[str, Any]:
        if self.planned is not None:
            return self.planned(attributes)
        return schema.normalize(self.schema, attributes)


RESOURCES: Dict[str, ResourceType] = {
    security_group.RESOURCE_TYPE: ResourceType(
        name=security_group.RESOURCE_TYPE,
        schema=security_group.SCHEMA,
        config_from=security_group.SecurityGroupConfig.from_attributes,
        create=security_group.create,
        read=security_group.read,
        delete=security_group.delete,
    ),
    security_group_rule.RESOURCE_TYPE: ResourceType(
        name=security_group_rule.RESOURCE_TYPE,
        schema=security_group_rule.SCHEMA,
        config_from=security_group_rule.SecurityGroupRuleConfig.from_attributes,
        create=security_group_rule.create,
        read=security_group_rule.read,
        delete=security_group_rule.delete,
        planned=security_group_rule.planned_attributes,
    ),
}


def get_resource_type(resource_type: str) -> ResourceType:
    try:
        return RESOURCES[resource_type]
    except KeyError:
        raise UnknownResourceType(resource_type) from None


def validate(resource_type: str, attributes: Dict[str, Any]) -> List[str]:
    """Return every violation; unresolved template references are not errors here."""
    rt = get_resource_type(resource_type)
    return schema.validate(rt.schema, schema.normalize(rt.schema, attributes))


def create(resource_type: str, attributes: Dict[str, Any], ctx: ProviderContext) -> ResourceState:
    rt = get_resource_type(resource_type)
    config = rt.config_from(attributes)
    state = rt.create(config, ctx)
    logger.info("created %s id=%s", resource_type, state.id)
    return state


def read(resource_type: str, state: ResourceState, ctx: ProviderContext) -> ResourceState:
    get_resource_type(resource_type).read(state, ctx)
    return state


def delete(resource_type: str, state: ResourceState, ctx: ProviderContext) -> None:
    get_resource_type(resource_type).delete(state, ctx)
    logger.info("deleted %s id=%s", resource_type, state.id)
    state.clear()


def requires_replacement(
    resource_type: str, old: Dict[str, Any], new: Dict[str, Any]
) -> List[str]:
    """
    Names of force-new attributes whose declared value changed.

    Both sides are first brought to the form create stores, so a rule
    compared with its own declaration reports nothing. Optional+computed
    attributes left out of the new declaration keep the value already in
    state and do not count as a change.
    """
    rt = get_resource_type(resource_type)
    old_attrs = rt.planned_attributes(old)
    new_attrs = rt.planned_attributes(new)

    changed = []
    for key in schema.force_new_fields(rt.schema):
        field = rt.schema[key]
        new_val = new_attrs.get(key)
        if field.computed and not schema.is_set(new_val):
            continue
        old_val = old_attrs.get(key)
        if not schema.is_set(old_val) and not schema.is_set(new_val):
            continue
        if old_val != new_val:
            changed.append(key)
    return changed


def replace(
    resource_type: str,
    state: ResourceState,
    attributes: Dict[str, Any],
    ctx: ProviderContext,
) -> ResourceState:
    """Apply a change as delete-then-create. The new declaration is checked first."""
    rt = get_resource_type(resource_type)
    config = rt.config_from(attributes)
    if state.exists:
        delete(resource_type, state, ctx)
    new_state = rt.create(config, ctx)
    logger.info("replaced %s, new id=%s", resource_type, new_state.id)
    return new_state
