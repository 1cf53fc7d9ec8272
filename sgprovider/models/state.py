from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class ResourceState:
    """
    Local view of one resource instance as the host orchestrator stores it.
    An empty id means the resource is absent and must be (re)created.
    """
    id: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def exists(self) -> bool:
        return bool(self.id)

    def get(self, key: str, default: Any = None) -> Any:
        val = self.attributes.get(key)
        return default if val is None else val

    def set(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def clear(self) -> None:
        self.id = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "attributes": dict(self.attributes)}
