import argparse
import json
import logging
import sys
from typing import List, Optional

import yaml

from shrdoc_core import (
    ElementDoc,
    ModelError,
    compile_documentation,
    load_cimcore,
    write_html_docs,
)

log = logging.getLogger("shrdoc")


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if getattr(args, "verbose", False):
        level = logging.DEBUG
    elif getattr(args, "quiet", False):
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _element_lines(doc: ElementDoc) -> List[str]:
    element = doc.element
    lines = [element.fqn]
    if element.hierarchy:
        lines.append(f"  hierarchy: {' -> '.join(element.hierarchy)}")
    for field_doc in doc.fields:
        marker = " (inherited)" if field_doc.inherited else ""
        lines.append(f"  {field_doc.field.display_name}{marker}")
        for row in field_doc.constraints:
            extra = f" {row.binding}" if row.binding else ""
            if row.override:
                extra += f" [last modified by {row.override}]"
            lines.append(f"    {row.name:<14} {row.path:<30} {row.value}{extra}")
    return lines


def cmd_generate(args: argparse.Namespace) -> int:
    cimcore = load_cimcore(args.model)
    documentation = compile_documentation(cimcore, logger=log)
    written = write_html_docs(documentation, args.out, logger=log)
    print(f"Wrote {len(written)} documentation files: {args.out}")
    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    cimcore = load_cimcore(args.model)
    documentation = compile_documentation(cimcore, logger=log)
    if args.element:
        docs = [documentation.doc_for(args.element)]
    else:
        docs = [documentation.element_docs[e.fqn] for e in documentation.elements.list()]

    if args.json:
        payload = [
            {
                "fqn": doc.element.fqn,
                "hierarchy": doc.element.hierarchy,
                "namespacePath": doc.element.namespace_path,
                "constraints": [row.to_dict() for row in doc.constraints],
            }
            for doc in docs
        ]
        print(json.dumps(payload, indent=2))
        return 0

    for doc in docs:
        for line in _element_lines(doc):
            print(line)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shrdoc", description="SHR JSON Javadoc generator")
    sub = parser.add_subparsers(dest="command", required=True)

    def _add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("model", help="Path to a cimcore JSON/YAML file or directory")
        verbosity = p.add_mutually_exclusive_group()
        verbosity.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
        verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log errors")

    generate_parser = sub.add_parser("generate", help="Generate HTML documentation")
    _add_common(generate_parser)
    generate_parser.add_argument("--out", default="out", help="Output directory (default: out)")
    generate_parser.set_defaults(func=cmd_generate)

    inspect_parser = sub.add_parser("inspect", help="Print resolved constraints")
    _add_common(inspect_parser)
    inspect_parser.add_argument("--element", help="Only show the element with this fqn")
    inspect_parser.add_argument("--json", action="store_true", help="Emit JSON")
    inspect_parser.set_defaults(func=cmd_inspect)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)
    try:
        return args.func(args)
    except (ModelError, FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
