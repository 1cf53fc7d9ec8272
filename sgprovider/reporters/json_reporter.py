"""
JSON validation report generator.
"""
import json
from datetime import datetime, timezone
from typing import Dict, List

from sgprovider import __version__
from sgprovider.models.resource import Resource


def build_report(
    resources: List[Resource], errors: Dict[str, List[str]], source_path: str
) -> str:
    invalid = sum(1 for r in resources if errors.get(r.qualified_name))
    report = {
        "meta": {
            "generated": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "source": source_path,
            "tool": "sgprovider",
            "version": __version__,
        },
        "summary": {
            "resources": len(resources),
            "valid": len(resources) - invalid,
            "invalid": invalid,
        },
        "resources": [
            {
                "name": r.name,
                "resource_type": r.resource_type,
                "source_file": r.source_file,
                "relationships": r.relationships,
                "valid": not errors.get(r.qualified_name),
                "errors": errors.get(r.qualified_name, []),
            }
            for r in resources
        ],
    }
    return json.dumps(report, indent=2)
