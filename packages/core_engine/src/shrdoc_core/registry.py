"""Element and namespace registries for a loaded model."""

from typing import Dict, Iterator, List, Optional, Tuple

from shrdoc_core.errors import CycleDetected, DuplicateElementError, ModelIntegrityError
from shrdoc_core.model import DataElement, Namespace


class ElementRegistry:
    """Data elements keyed by fqn, in insertion order."""

    def __init__(self) -> None:
        self._elements: Dict[str, DataElement] = {}
        self._flattened = False

    def __contains__(self, fqn: object) -> bool:
        return fqn in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[DataElement]:
        return iter(self._elements.values())

    def add(self, element: DataElement) -> None:
        if element.fqn in self._elements:
            raise DuplicateElementError(element.fqn)
        self._elements[element.fqn] = element

    def lookup(self, fqn: str) -> Optional[DataElement]:
        return self._elements.get(fqn)

    def get(self, fqn: str, context: str = "") -> DataElement:
        element = self._elements.get(fqn)
        if element is None:
            raise ModelIntegrityError(fqn, context)
        return element

    def list(self) -> List[DataElement]:
        return list(self._elements.values())

    def _parent_of(self, element: DataElement) -> Optional[str]:
        if len(element.based_on) > 1:
            raise ModelIntegrityError(
                element.fqn,
                f"declares {len(element.based_on)} parents, at most one is supported",
            )
        return element.based_on[0] if element.based_on else None

    def _ancestors(self, element: DataElement) -> List[str]:
        chain = [element.fqn]
        visited = {element.fqn}
        ancestors: List[str] = []
        parent = self._parent_of(element)
        while parent is not None:
            if parent in visited:
                raise CycleDetected(chain + [parent])
            visited.add(parent)
            chain.append(parent)
            current = self.get(parent, f"parent of {chain[-2]}")
            ancestors.append(current.fqn)
            parent = self._parent_of(current)
        return ancestors

    def flatten(self) -> None:
        """Materialize ``hierarchy`` (closest ancestor first) on every element."""
        if self._flattened:
            raise RuntimeError("Element hierarchy has already been flattened.")
        hierarchies = {fqn: self._ancestors(element) for fqn, element in self._elements.items()}
        for fqn, ancestors in hierarchies.items():
            self._elements[fqn].hierarchy = ancestors
        self._flattened = True


class NamespaceRegistry:
    """Namespaces in first-seen order."""

    def __init__(self) -> None:
        self._namespaces: Dict[str, Namespace] = {}

    def __len__(self) -> int:
        return len(self._namespaces)

    def lookup(self, name: str) -> Optional[Namespace]:
        return self._namespaces.get(name)

    def ensure(self, name: str) -> Tuple[Namespace, bool]:
        namespace = self._namespaces.get(name)
        if namespace is not None:
            return namespace, False
        namespace = Namespace(name=name)
        self._namespaces[name] = namespace
        return namespace, True

    def get(self, name: str) -> Namespace:
        namespace, _ = self.ensure(name)
        return namespace

    def add_element(self, element: DataElement) -> Namespace:
        namespace = self.get(element.namespace)
        namespace.elements.append(element)
        element.namespace_path = namespace.path
        return namespace

    def list(self) -> List[Namespace]:
        return list(self._namespaces.values())
