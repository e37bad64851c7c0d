from shrdoc_core.assembler import Documentation, ElementDoc, FieldDoc, compile_documentation
from shrdoc_core.cardinality import format_card
from shrdoc_core.constraints import ConstraintResolver, resolve_constraints
from shrdoc_core.docs_generator import (
    generate_allclasses_frame,
    generate_element_page,
    generate_index_page,
    generate_info_page,
    generate_overview_frame,
    generate_overview_summary,
    generate_package_frame,
    write_html_docs,
)
from shrdoc_core.errors import (
    CycleDetected,
    DuplicateElementError,
    ModelError,
    ModelIntegrityError,
    UnsupportedFixedValueError,
)
from shrdoc_core.loader import load_cimcore
from shrdoc_core.model import DataElement, Field, Namespace, ResolvedConstraint
from shrdoc_core.registry import ElementRegistry, NamespaceRegistry

__all__ = [
    "compile_documentation",
    "ConstraintResolver",
    "CycleDetected",
    "DataElement",
    "Documentation",
    "DuplicateElementError",
    "ElementDoc",
    "ElementRegistry",
    "Field",
    "FieldDoc",
    "format_card",
    "generate_allclasses_frame",
    "generate_element_page",
    "generate_index_page",
    "generate_info_page",
    "generate_overview_frame",
    "generate_overview_summary",
    "generate_package_frame",
    "load_cimcore",
    "ModelError",
    "ModelIntegrityError",
    "Namespace",
    "NamespaceRegistry",
    "ResolvedConstraint",
    "resolve_constraints",
    "UnsupportedFixedValueError",
    "write_html_docs",
]
