"""Resolution of a field's constraint tree into constraint table rows.

A field contributes, in order:

- for fields declared on the element itself, a DataType row and a Cardinality
  row (a top-level ``type`` constraint narrows the DataType row in place);
- one or more rows per constraint tag, in the order the tags are declared,
  with ``subpaths`` recursing into nested fields and extending the dotted path.

Rows whose constraint records ``lastModifiedBy`` link to the ancestor element
that last changed them.
"""

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional

from shrdoc_core.cardinality import format_card
from shrdoc_core.errors import UnsupportedFixedValueError
from shrdoc_core.model import Field, ResolvedConstraint
from shrdoc_core.registry import ElementRegistry

log = logging.getLogger(__name__)

DATA_TYPE = "DataType"
CARDINALITY = "Cardinality"
INCLUDES_TYPE = "Includes Type"
INCLUDES_CODE = "Includes Code"
VALUE_SET = "Value Set"
FIXED_VALUE = "Fixed Value"


class ConstraintResolver:
    """Builds the constraint rows for one field; one instance per resolution."""

    def __init__(
        self,
        field: Field,
        elements: ElementRegistry,
        inherited: bool,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.field = field
        self.elements = elements
        self.inherited = inherited
        self.logger = logger or log
        self._datatype: Optional[ResolvedConstraint] = None
        self._cardinality: Optional[ResolvedConstraint] = None
        self._rows: List[ResolvedConstraint] = []

    def resolve(self) -> List[ResolvedConstraint]:
        if not self.inherited:
            self._reserve_baseline()
        for tag, payload in (self.field.constraints or {}).items():
            self._dispatch(tag, payload, self.field.name)
        baseline = [row for row in (self._datatype, self._cardinality) if row is not None]
        return baseline + self._rows

    def _new_row(
        self,
        name: str,
        value: str,
        path: str,
        last_modified_by: Optional[str] = None,
        href: Optional[str] = None,
        binding: Optional[str] = None,
    ) -> ResolvedConstraint:
        row = ResolvedConstraint(
            name=name,
            source=self.field.name,
            value=value,
            path=path,
            href=href,
            binding=binding,
        )
        source = self.elements.lookup(self.field.fqn) if self.field.fqn else None
        if source is not None:
            row.source_href = source.href
        if last_modified_by is not None:
            modifier = self.elements.get(last_modified_by, f"last modifier of {path}")
            row.override = modifier.name
            row.override_href = modifier.href
        return row

    def _reserve_baseline(self) -> None:
        path = self.field.name
        href = None
        if self.field.path:
            href = f"../{self.field.path}/{self.field.name}.html"
        self._datatype = self._new_row(DATA_TYPE, self.field.display_name, path, href=href)
        self._cardinality = self._new_row(CARDINALITY, format_card(self.field.card), path)

    def _dispatch(self, tag: str, payload: Any, subpath: str) -> None:
        handler = _TAG_HANDLERS.get(tag)
        if handler is None:
            self.logger.warning(
                "Skipping unrecognized constraint '%s' on %s (field %s)",
                tag,
                subpath,
                self.field.name,
            )
            return
        handler(self, payload, subpath)

    def _includes_type(self, payload: List[Mapping[str, Any]], subpath: str) -> None:
        for item in payload:
            fqn = item.get("fqn", "")
            subtype = self.elements.get(fqn, f"included type at {subpath}")
            value = f"{format_card(item.get('card'))} {fqn}"
            self._rows.append(
                self._new_row(INCLUDES_TYPE, value, subpath, item.get("lastModifiedBy"), subtype.href)
            )

    def _includes_code(self, payload: List[Mapping[str, Any]], subpath: str) -> None:
        for item in payload:
            system = item.get("system") or ""
            value = f"{system}#{item.get('code', '')}"
            self._rows.append(self._new_row(INCLUDES_CODE, value, subpath, item.get("lastModifiedBy")))

    def _value_set(self, payload: Mapping[str, Any], subpath: str) -> None:
        uri = payload.get("uri", "")
        self._rows.append(
            self._new_row(
                VALUE_SET,
                uri,
                subpath,
                payload.get("lastModifiedBy"),
                href=uri,
                binding=f"({payload.get('bindingStrength', '')})",
            )
        )

    def _subpaths(self, payload: Mapping[str, Mapping[str, Any]], subpath: str) -> None:
        for key, tree in payload.items():
            nested_path = subpath
            target = self.elements.lookup(key)
            if target is not None:
                nested_path = f"{subpath}.{target.name}" if subpath else target.name
            for tag, nested in tree.items():
                self._dispatch(tag, nested, nested_path)

    def _type(self, payload: Mapping[str, Any], subpath: str) -> None:
        target = self.elements.get(payload.get("fqn", ""), f"type constraint at {subpath}")
        if subpath == self.field.name and not self.inherited and self._datatype is not None:
            self._datatype = replace(self._datatype, value=target.name, href=target.href)
            return
        self._rows.append(
            self._new_row(DATA_TYPE, target.name, subpath, payload.get("lastModifiedBy"), target.href)
        )

    def _fixed_value(self, payload: Mapping[str, Any], subpath: str) -> None:
        kind = payload.get("type")
        literal = payload.get("value")
        if kind == "code":
            code = literal or {}
            value = f"{code.get('system') or ''}#{code.get('code', '')}"
        elif kind == "boolean":
            value = str(literal).lower()
        else:
            raise UnsupportedFixedValueError(str(kind), subpath)
        self._rows.append(self._new_row(FIXED_VALUE, value, subpath, payload.get("lastModifiedBy")))

    def _card(self, payload: Mapping[str, Any], subpath: str) -> None:
        self._rows.append(
            self._new_row(CARDINALITY, format_card(payload), subpath, payload.get("lastModifiedBy"))
        )


_TAG_HANDLERS: Dict[str, Callable[[ConstraintResolver, Any, str], None]] = {
    "includesType": ConstraintResolver._includes_type,
    "includesCode": ConstraintResolver._includes_code,
    "valueSet": ConstraintResolver._value_set,
    "subpaths": ConstraintResolver._subpaths,
    "type": ConstraintResolver._type,
    "fixedValue": ConstraintResolver._fixed_value,
    "card": ConstraintResolver._card,
}


def resolve_constraints(
    field: Field,
    elements: ElementRegistry,
    inherited: bool,
    logger: Optional[logging.Logger] = None,
) -> List[ResolvedConstraint]:
    """Return the ordered constraint rows for ``field``."""
    return ConstraintResolver(field, elements, inherited, logger=logger).resolve()
