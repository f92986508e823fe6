"""
Operation registry

Static description of every operation the dispatcher can route: its argument
shape, how validated arguments become an upstream request, its cache class and
whether its result rows need normalizing.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from .validation import ArgumentSchema

CACHE_CLASSES = ("schema", "search", "none")


@dataclass(frozen=True)
class UpstreamRequest:
    method: str
    path: str
    params: Optional[Dict[str, Any]] = None
    json_data: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class OperationSpec:
    """A named, schema-validated unit of work."""
    name: str
    description: str
    schema: ArgumentSchema
    build_request: Callable[[Dict[str, Any]], UpstreamRequest]
    cache_class: str = "none"
    normalize_rows: bool = False
    read_only: bool = True

    def __post_init__(self):
        if self.cache_class not in CACHE_CLASSES:
            raise ValueError(f"Unknown cache class for {self.name}: {self.cache_class}")

    @property
    def cacheable(self) -> bool:
        return self.cache_class != "none"


@dataclass
class OperationRegistry:
    _operations: Dict[str, OperationSpec] = field(default_factory=dict)

    def register(self, spec: OperationSpec) -> OperationSpec:
        if spec.name in self._operations:
            raise ValueError(f"Operation already registered: {spec.name}")
        self._operations[spec.name] = spec
        return spec

    def get(self, name: str) -> Optional[OperationSpec]:
        return self._operations.get(name)

    def names(self) -> List[str]:
        return list(self._operations)

    def __contains__(self, name: str) -> bool:
        return name in self._operations

    def __iter__(self) -> Iterator[OperationSpec]:
        return iter(self._operations.values())

    def __len__(self) -> int:
        return len(self._operations)
