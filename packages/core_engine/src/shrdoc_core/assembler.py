"""Builds the resolved documentation model from a cimcore document."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from shrdoc_core.constraints import resolve_constraints
from shrdoc_core.model import DataElement, Field, ResolvedConstraint
from shrdoc_core.registry import ElementRegistry, NamespaceRegistry

log = logging.getLogger(__name__)


@dataclass
class FieldDoc:
    field: Field
    inherited: bool
    constraints: List[ResolvedConstraint]
    is_value: bool = False


@dataclass
class ElementDoc:
    element: DataElement
    fields: List[FieldDoc] = field(default_factory=list)

    @property
    def constraints(self) -> List[ResolvedConstraint]:
        rows: List[ResolvedConstraint] = []
        for field_doc in self.fields:
            rows.extend(field_doc.constraints)
        return rows


@dataclass
class Documentation:
    project: Dict[str, Any]
    namespaces: NamespaceRegistry
    elements: ElementRegistry
    element_docs: Dict[str, ElementDoc]

    def doc_for(self, fqn: str) -> ElementDoc:
        self.elements.get(fqn)
        return self.element_docs[fqn]


def _document_element(
    element: DataElement,
    elements: ElementRegistry,
    logger: logging.Logger,
) -> ElementDoc:
    doc = ElementDoc(element=element)
    members = [(element.value, True)] if element.value is not None else []
    members.extend((f, False) for f in element.fields)
    for member, is_value in members:
        inherited = member.inherited
        rows = resolve_constraints(member, elements, inherited, logger=logger)
        doc.fields.append(FieldDoc(field=member, inherited=inherited, constraints=rows, is_value=is_value))
    return doc


def compile_documentation(
    cimcore: Dict[str, Any],
    logger: Optional[logging.Logger] = None,
) -> Documentation:
    """Load registries from ``cimcore``, flatten inheritance, resolve every field.

    Any model integrity failure propagates; nothing is returned for a model
    that cannot be fully resolved.
    """
    logger = logger or log
    namespaces = NamespaceRegistry()
    elements = ElementRegistry()

    declared = cimcore.get("namespaces") or {}
    logger.info("Compiling documentation for %d namespaces...", len(declared))
    for name, info in declared.items():
        namespace = namespaces.get(name)
        namespace.description = (info or {}).get("description", "") or ""

    for raw in cimcore.get("dataElements") or []:
        element = DataElement.from_dict(raw)
        elements.add(element)
        _, created = namespaces.ensure(element.namespace)
        if created:
            logger.debug("Namespace %s referenced by %s before it was described", element.namespace, element.fqn)
        namespaces.add_element(element)

    elements.flatten()

    element_docs = {
        element.fqn: _document_element(element, elements, logger) for element in elements.list()
    }
    logger.info("Resolved constraints for %d data elements", len(element_docs))
    return Documentation(
        project=dict(cimcore.get("projectInfo") or {}),
        namespaces=namespaces,
        elements=elements,
        element_docs=element_docs,
    )
