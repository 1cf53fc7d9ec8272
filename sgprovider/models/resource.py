from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class Resource:
    resource_type: str     # e.g. "exoscale_security_group_rule"
    name: str              # logical name in the template
    attributes: Dict[str, Any] = field(default_factory=dict)
    source_file: str = ""
    relationships: List[str] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.resource_type}.{self.name}"
