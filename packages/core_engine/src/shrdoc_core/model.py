"""In-memory records for a loaded cimcore model."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

REF_VALUE = "RefValue"


@dataclass
class Field:
    """A field (or the value) of a data element, as declared in cimcore."""

    name: str
    fqn: str = ""
    value_type: str = ""
    card: Optional[Dict[str, Any]] = None
    constraints: Optional[Dict[str, Any]] = None
    path: Optional[str] = None
    description: str = ""
    inheritance: Optional[Any] = None

    @property
    def is_reference(self) -> bool:
        return self.value_type == REF_VALUE

    @property
    def inherited(self) -> bool:
        return self.inheritance is not None

    @property
    def display_name(self) -> str:
        return f"ref({self.name})" if self.is_reference else self.name

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Field":
        fqn = data.get("fqn", "") or ""
        name = data.get("name") or fqn.rsplit(".", 1)[-1]
        return cls(
            name=name,
            fqn=fqn,
            value_type=data.get("valueType", ""),
            card=data.get("card"),
            constraints=data.get("constraints"),
            path=data.get("path"),
            description=data.get("description", "") or "",
            inheritance=data.get("inheritance"),
        )


@dataclass
class DataElement:
    fqn: str
    name: str
    namespace: str
    description: str = ""
    concepts: List[Dict[str, Any]] = field(default_factory=list)
    value: Optional[Field] = None
    fields: List[Field] = field(default_factory=list)
    based_on: List[str] = field(default_factory=list)
    hierarchy: List[str] = field(default_factory=list)
    namespace_path: str = ""
    abstract: bool = False

    @property
    def href(self) -> str:
        """Link to this element's page, relative to any namespace directory."""
        return f"../{self.namespace_path}/{self.name}.html"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataElement":
        fqn = data.get("fqn")
        if not fqn:
            raise ValueError("Data element requires an 'fqn'.")
        namespace, _, simple = fqn.rpartition(".")
        based_on = data.get("basedOn") or []
        if isinstance(based_on, str):
            based_on = [based_on]
        value = data.get("value")
        return cls(
            fqn=fqn,
            name=data.get("name") or simple,
            namespace=data.get("namespace") or namespace,
            description=data.get("description", "") or "",
            concepts=list(data.get("concepts") or []),
            value=Field.from_dict(value) if isinstance(value, dict) else None,
            fields=[Field.from_dict(f) for f in data.get("fields") or []],
            based_on=list(based_on),
            abstract=bool(data.get("isAbstract", False)),
        )


@dataclass
class Namespace:
    name: str
    description: str = ""
    elements: List[DataElement] = field(default_factory=list)

    @property
    def path(self) -> str:
        return self.name


@dataclass
class ResolvedConstraint:
    """One row of an element page's constraint table."""

    name: str
    source: str
    value: str
    path: str
    href: Optional[str] = None
    binding: Optional[str] = None
    source_href: Optional[str] = None
    override: Optional[str] = None
    override_href: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: val for key, val in asdict(self).items() if val is not None}
