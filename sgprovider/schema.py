"""
Declarative resource schemas and the validation run before any handler.

A schema maps attribute names to ``Field`` declarations. ``validate`` returns
every violated constraint so the operator sees all problems at once.
"""
import ipaddress
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

Validator = Callable[[str, Any], List[str]]

# Terraform meta-arguments, accepted on every resource and never validated.
META_ARGUMENTS = {"count", "for_each", "depends_on", "lifecycle", "provider", "provisioner"}


class FieldType(str, Enum):
    STRING = "string"
    INT    = "int"
    SET    = "set"


@dataclass(frozen=True)
class Field:
    type: FieldType
    required: bool = False
    optional: bool = False
    computed: bool = False
    force_new: bool = False
    default: Any = None
    validate: Optional[Validator] = None
    conflicts_with: Tuple[str, ...] = ()
    at_least_one_of: Tuple[str, ...] = ()
    description: str = ""

    @property
    def settable(self) -> bool:
        return self.required or self.optional

    def flags(self) -> List[str]:
        out = []
        for flag in ("required", "optional", "computed", "force_new"):
            if getattr(self, flag):
                out.append(flag)
        return out


Schema = Dict[str, Field]


# ---------------------------------------------------------------- validators

def string_in_slice(valid: Sequence[str], ignore_case: bool = False) -> Validator:
    def _check(key: str, val: Any) -> List[str]:
        if not isinstance(val, str):
            return [f"expected type of {key} to be string"]
        if ignore_case:
            ok = val.lower() in (v.lower() for v in valid)
        else:
            ok = val in valid
        if ok:
            return []
        return [f"expected {key} to be one of [{' '.join(valid)}], got {val}"]
    return _check


def int_between(low: int, high: int) -> Validator:
    def _check(key: str, val: Any) -> List[str]:
        if isinstance(val, bool) or not isinstance(val, int):
            return [f"expected type of {key} to be integer"]
        if low <= val <= high:
            return []
        return [f"expected {key} to be in the range ({low} - {high}), got {val}"]
    return _check


def cidr_network(min_bits: int, max_bits: int) -> Validator:
    def _check(key: str, val: Any) -> List[str]:
        if not isinstance(val, str):
            return [f"expected type of {key} to be string"]
        try:
            net = ipaddress.ip_network(val, strict=False)
        except ValueError:
            return [f"expected {key} to contain a valid CIDR, got: {val}"]
        if "/" not in val:
            return [f"expected {key} to contain a valid CIDR, got: {val}"]
        if not min_bits <= net.prefixlen <= max_bits:
            return [
                f"expected {key} to contain a network CIDR with between "
                f"{min_bits} and {max_bits} significant bits, got: {net.prefixlen}"
            ]
        return []
    return _check


# ---------------------------------------------------------------- helpers

def is_unknown(val: Any) -> bool:
    """True for template references the host has not resolved yet."""
    return isinstance(val, str) and "${" in val


def is_set(val: Any) -> bool:
    return val is not None and val != ""


def _coerce(field: Field, val: Any) -> Any:
    """Apply the same string-to-int conversion HCL does for numeric attributes."""
    if field.type == FieldType.INT and isinstance(val, str):
        try:
            return int(val.strip())
        except ValueError:
            return val
    return val


def _type_ok(field: Field, val: Any) -> bool:
    if field.type == FieldType.STRING:
        return isinstance(val, str)
    if field.type == FieldType.INT:
        return isinstance(val, int) and not isinstance(val, bool)
    return isinstance(val, (list, set, frozenset, tuple))


def normalize(schema: Schema, attributes: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy with numeric strings coerced and defaults filled in."""
    out: Dict[str, Any] = {}
    for key, val in attributes.items():
        field = schema.get(key)
        out[key] = _coerce(field, val) if field is not None else val
    return with_defaults(schema, out)


def with_defaults(schema: Schema, attributes: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(attributes)
    for key, field in schema.items():
        if field.default is not None and not is_set(out.get(key)):
            out[key] = field.default
    return out


def validate(schema: Schema, attributes: Dict[str, Any]) -> List[str]:
    errors: List[str] = []

    for key in attributes:
        if key in META_ARGUMENTS:
            continue
        if key not in schema:
            errors.append(f"unsupported argument: {key}")

    for key, field in schema.items():
        val = attributes.get(key)
        present = is_set(val)

        if not present:
            if field.required:
                errors.append(f"{key}: required field is not set")
            elif field.at_least_one_of and not any(
                is_set(attributes.get(k)) for k in field.at_least_one_of
            ):
                errors.append(
                    f"{key}: one of `{','.join((key,) + field.at_least_one_of)}` must be specified"
                )
            continue

        if not field.settable:
            errors.append(f"{key}: computed attributes cannot be set")
            continue

        for other in field.conflicts_with:
            if is_set(attributes.get(other)):
                errors.append(f"{key}: conflicts with {other}")

        if is_unknown(val):
            continue

        val = _coerce(field, val)
        if not _type_ok(field, val):
            errors.append(f"{key}: expected {field.type.value}, got {type(val).__name__}")
            continue

        if field.validate is not None:
            errors.extend(f"{key}: {msg}" for msg in field.validate(key, val))

    return errors


def force_new_fields(schema: Schema) -> List[str]:
    return [k for k, f in schema.items() if f.force_new]


def unresolved(attributes: Dict[str, Any]) -> List[str]:
    """Violations for attributes that still hold template references."""
    return [
        f"{key}: value is not known until apply ({val})"
        for key, val in attributes.items()
        if is_unknown(val)
    ]
