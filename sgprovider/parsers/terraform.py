import os
import re
from typing import Any, Dict, List

import hcl2
from rich.console import Console

from sgprovider.models.resource import Resource

console = Console(stderr=True)

# Regex to find references to other declared resources in attribute values
_REF_RE = re.compile(r'\bexoscale_\w+\.\w+')


def _unquote(val: str) -> str:
    """Newer python-hcl2 releases keep the surrounding quotes on string literals."""
    if len(val) >= 2 and val[0] == '"' and val[-1] == '"':
        return val[1:-1]
    return val


def _unwrap(val: Any) -> Any:
    """
    python-hcl2 wraps single-element blocks in a list.
    Recursively unwrap single-element lists that contain dicts, and drop
    the parser's own metadata keys.
    """
    if isinstance(val, list):
        if len(val) == 1 and isinstance(val[0], dict):
            return _unwrap(val[0])
        return [_unwrap(v) for v in val]
    if isinstance(val, dict):
        return {k: _unwrap(v) for k, v in val.items() if not k.startswith("__")}
    if isinstance(val, str):
        return _unquote(val)
    return val


def _extract_refs(val: Any) -> List[str]:
    """Recursively scan attribute values for cross-resource references."""
    refs: List[str] = []
    if isinstance(val, str):
        refs.extend(_REF_RE.findall(val))
    elif isinstance(val, list):
        for item in val:
            refs.extend(_extract_refs(item))
    elif isinstance(val, dict):
        for v in val.values():
            refs.extend(_extract_refs(v))
    return refs


def _extract_all_refs(attrs: Dict[str, Any]) -> List[str]:
    refs = set()
    for v in attrs.values():
        refs.update(_extract_refs(v))
    return sorted(refs)


def _make(resource_type: str, name: str, raw_attrs: Any, filepath: str) -> Resource:
    attrs = _unwrap(raw_attrs) if isinstance(raw_attrs, dict) else {}
    if not isinstance(attrs, dict):
        attrs = {}
    return Resource(
        resource_type=_unquote(resource_type),
        name=_unquote(name),
        attributes=attrs,
        source_file=filepath,
        relationships=_extract_all_refs(attrs),
    )


def parse_file(filepath: str) -> List[Resource]:
    resources: List[Resource] = []
    try:
        with open(filepath) as fh:
            data = hcl2.load(fh)
    except Exception as exc:
        console.print(f"[yellow]Warning:[/yellow] failed to parse {filepath}: {exc}")
        return resources

    for resource_block in data.get("resource", []):
        for resource_type, instances in resource_block.items():
            if isinstance(instances, list):
                # hcl2 wraps the block in a list
                for instance_map in instances:
                    if not isinstance(instance_map, dict):
                        continue
                    for name, raw_attrs in instance_map.items():
                        if name.startswith("__"):
                            continue
                        resources.append(_make(resource_type, name, raw_attrs, filepath))
            elif isinstance(instances, dict):
                for name, raw_attrs in instances.items():
                    if name.startswith("__"):
                        continue
                    resources.append(_make(resource_type, name, raw_attrs, filepath))

    return resources


def parse_paths(paths: List[str]) -> List[Resource]:
    """Parse every .tf file under the given files and directories."""
    resources: List[Resource] = []

    for path in paths:
        if os.path.isfile(path):
            if path.endswith(".tf"):
                resources.extend(parse_file(path))
            continue

        if not os.path.isdir(path):
            console.print(f"[yellow]Warning:[/yellow] '{path}' does not exist, skipping.")
            continue

        for root, _, files in os.walk(path):
            for fname in sorted(files):
                if fname.endswith(".tf"):
                    resources.extend(parse_file(os.path.join(root, fname)))

    return resources
