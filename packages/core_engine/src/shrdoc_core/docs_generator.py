"""HTML documentation generator for resolved cimcore models.

Generates a frame-based reference browser:
- index.html (frameset), overview-frame.html, overview-summary.html,
  allclasses-frame.html and stylesheet.css at the root
- <namespace>/<namespace>-pkg.html and <namespace>/<namespace>-info.html
- <namespace>/<Element>.html for every data element
"""

import html
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from shrdoc_core.assembler import Documentation, ElementDoc
from shrdoc_core.cardinality import format_card
from shrdoc_core.model import DataElement, Namespace, ResolvedConstraint

log = logging.getLogger(__name__)


def _esc(text: Any) -> str:
    """HTML-escape a string."""
    return html.escape(str(text)) if text else ""


def _link(text: str, href: Optional[str], target: Optional[str] = None) -> str:
    if not href:
        return _esc(text)
    target_attr = f' target="{_esc(target)}"' if target else ""
    return f'<a href="{_esc(href)}"{target_attr}>{_esc(text)}</a>'


def _project_label(project: Dict[str, Any]) -> str:
    name = project.get("name") or project.get("shorthand") or "Standard Health Record"
    version = project.get("version")
    return f"{name} v{version}" if version else name


STYLESHEET = """
:root {
  --bg: #f8fafc; --surface: #ffffff; --border: #e2e8f0;
  --text: #1e293b; --text-muted: #64748b; --text-light: #94a3b8;
  --accent: #3b82f6; --accent-light: #dbeafe; --purple: #8b5cf6;
}
* { box-sizing: border-box; }
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: var(--bg); color: var(--text); line-height: 1.5; margin: 0; padding: 12px 20px; font-size: 14px; }
a { color: var(--accent); text-decoration: none; }
a:hover { text-decoration: underline; }
h1 { font-size: 20px; margin: 8px 0; }
h2 { font-size: 16px; margin: 20px 0 8px; padding-bottom: 6px; border-bottom: 2px solid var(--accent); }
.frame-title { font-size: 13px; font-weight: 700; text-transform: uppercase; letter-spacing: 0.5px; color: var(--text-muted); }
.frame-list { list-style: none; padding: 0; margin: 6px 0; }
.frame-list li { padding: 2px 0; font-size: 13px; }
.header-meta { font-size: 12px; color: var(--text-muted); }
.namespace-label { font-size: 12px; color: var(--text-muted); text-transform: uppercase; letter-spacing: 0.5px; }
.hierarchy { list-style: none; padding: 0; margin: 8px 0; font-family: 'SF Mono', Monaco, Consolas, monospace; font-size: 13px; }
.hierarchy li::before { content: "\\21B3  "; color: var(--text-light); }
.hierarchy li:first-child::before { content: ""; }
.description { color: var(--text-muted); margin: 8px 0; }
.concepts { font-size: 12px; color: var(--text-muted); }
table { width: 100%; border-collapse: collapse; font-size: 13px; background: var(--surface); border: 1px solid var(--border); }
th { text-align: left; padding: 6px 10px; background: var(--bg); font-size: 11px; text-transform: uppercase; letter-spacing: 0.5px; color: var(--text-muted); border-bottom: 1px solid var(--border); }
td { padding: 6px 10px; border-bottom: 1px solid var(--border); vertical-align: top; }
tr.inherited td { color: var(--text-muted); }
.field-name, .constraint-path { font-family: 'SF Mono', Monaco, Consolas, monospace; }
.constraint-value { font-family: 'SF Mono', Monaco, Consolas, monospace; color: var(--purple); }
.binding, .override { font-size: 11px; color: var(--text-light); }
.filter-box input { width: 100%; padding: 6px 10px; border: 1px solid var(--border); border-radius: 6px; font-size: 13px; }
#no-match { display: none; color: var(--text-muted); font-size: 12px; }
footer { margin: 30px 0 10px; padding-top: 10px; border-top: 1px solid var(--border); font-size: 11px; color: var(--text-light); text-align: center; }
"""

_CLASS_FILTER_JS = """
function filterClasses() {
  const q = document.getElementById('class-filter').value.toLowerCase();
  let shown = 0;
  document.querySelectorAll('ul.frame-list li').forEach(li => {
    const match = li.textContent.toLowerCase().includes(q);
    li.style.display = match ? '' : 'none';
    if (match) shown += 1;
  });
  document.getElementById('no-match').style.display = shown === 0 ? 'block' : 'none';
}
"""


def _page(title: str, body: str, stylesheet: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>{_esc(title)}</title>
<link rel="stylesheet" type="text/css" href="{stylesheet}">
</head>
<body>
{body}
</body>
</html>"""


def _footer(project: Dict[str, Any]) -> str:
    return (
        f"<footer>{_esc(_project_label(project))} &middot; "
        f"Generated {datetime.now().strftime('%Y-%m-%d %H:%M')}</footer>"
    )


# ---------------------------------------------------------------------------
# Root pages
# ---------------------------------------------------------------------------

def generate_index_page(project: Dict[str, Any]) -> str:
    """Frameset tying the overview, class list and content frames together."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>{_esc(_project_label(project))}</title>
</head>
<frameset cols="20%,80%">
  <frameset rows="30%,70%">
    <frame src="overview-frame.html" name="packageListFrame" title="All Namespaces">
    <frame src="allclasses-frame.html" name="packageFrame" title="All Elements">
  </frameset>
  <frame src="overview-summary.html" name="classFrame" title="Element descriptions">
</frameset>
</html>"""


def generate_overview_frame(namespaces: List[Namespace], project: Dict[str, Any]) -> str:
    parts = [f'<div class="frame-title">{_esc(_project_label(project))}</div>']
    parts.append(f'<ul class="frame-list"><li>{_link("All Elements", "allclasses-frame.html", "packageFrame")}</li></ul>')
    parts.append('<div class="frame-title">Namespaces</div><ul class="frame-list">')
    for namespace in namespaces:
        pkg_href = f"{namespace.path}/{namespace.path}-pkg.html"
        parts.append(f"<li>{_link(namespace.name, pkg_href, 'packageFrame')}</li>")
    parts.append("</ul>")
    return _page("Namespaces", "\n".join(parts), "stylesheet.css")


def generate_overview_summary(elements: List[DataElement], project: Dict[str, Any]) -> str:
    parts = [f"<h1>{_esc(_project_label(project))}</h1>"]
    parts.append(f'<div class="header-meta">{len(elements)} data elements</div>')
    parts.append("<table><thead><tr><th>Element</th><th>Namespace</th><th>Description</th></tr></thead><tbody>")
    for element in elements:
        href = f"{element.namespace_path}/{element.name}.html"
        parts.append(
            "<tr>"
            f'<td class="field-name">{_link(element.name, href)}</td>'
            f"<td>{_esc(element.namespace)}</td>"
            f"<td>{_esc(element.description)}</td>"
            "</tr>"
        )
    parts.append("</tbody></table>")
    parts.append(_footer(project))
    return _page("Overview", "\n".join(parts), "stylesheet.css")


def generate_allclasses_frame(elements: List[DataElement]) -> str:
    parts = ['<div class="frame-title">All Elements</div>']
    parts.append(
        '<div class="filter-box"><input type="text" id="class-filter" '
        'placeholder="Filter elements..." oninput="filterClasses()"></div>'
    )
    parts.append('<p id="no-match">No matching elements</p>')
    parts.append('<ul class="frame-list">')
    for element in elements:
        if not element.hierarchy:
            continue
        href = f"{element.namespace_path}/{element.name}.html"
        parts.append(f"<li>{_link(element.name, href, 'classFrame')}</li>")
    parts.append("</ul>")
    parts.append(f"<script>{_CLASS_FILTER_JS}</script>")
    return _page("All Elements", "\n".join(parts), "stylesheet.css")


# ---------------------------------------------------------------------------
# Namespace pages
# ---------------------------------------------------------------------------

def generate_package_frame(namespace: Namespace) -> str:
    """Element list for one namespace, shown in the lower-left frame."""
    info_href = f"{namespace.path}-info.html"
    parts = [f'<div class="frame-title">{_link(namespace.name, info_href, "classFrame")}</div>']
    parts.append('<ul class="frame-list">')
    for element in namespace.elements:
        parts.append(f"<li>{_link(element.name, f'{element.name}.html', 'classFrame')}</li>")
    parts.append("</ul>")
    return _page(namespace.name, "\n".join(parts), "../stylesheet.css")


def generate_info_page(namespace: Namespace, project: Dict[str, Any]) -> str:
    parts = ['<div class="namespace-label">Namespace</div>']
    parts.append(f"<h1>{_esc(namespace.name)}</h1>")
    if namespace.description:
        parts.append(f'<p class="description">{_esc(namespace.description)}</p>')
    parts.append("<h2>Data Elements</h2>")
    parts.append("<table><thead><tr><th>Element</th><th>Description</th></tr></thead><tbody>")
    for element in namespace.elements:
        parts.append(
            f'<tr><td class="field-name">{_link(element.name, f"{element.name}.html")}</td>'
            f"<td>{_esc(element.description)}</td></tr>"
        )
    parts.append("</tbody></table>")
    parts.append(_footer(project))
    return _page(namespace.name, "\n".join(parts), "../stylesheet.css")


# ---------------------------------------------------------------------------
# Element pages
# ---------------------------------------------------------------------------

def _concept_label(concept: Dict[str, Any]) -> str:
    code = f"{concept.get('system') or ''}#{concept.get('code', '')}"
    display = concept.get("display")
    return f"{display} ({code})" if display else code


def _constraint_row(row: ResolvedConstraint) -> str:
    binding = f' <span class="binding">{_esc(row.binding)}</span>' if row.binding else ""
    override = ""
    if row.override:
        override = f'<span class="override">{_link(row.override, row.override_href)}</span>'
    return (
        "<tr>"
        f"<td>{_esc(row.name)}</td>"
        f'<td class="constraint-path">{_esc(row.path)}</td>'
        f'<td class="constraint-value">{_link(row.value, row.href)}{binding}</td>'
        f"<td>{_link(row.source, row.source_href)}</td>"
        f"<td>{override}</td>"
        "</tr>"
    )


def generate_element_page(doc: ElementDoc, documentation: Documentation) -> str:
    element = doc.element
    project = documentation.project
    parts = [f'<div class="namespace-label">{_link(element.namespace, f"{element.namespace_path}-info.html")}</div>']
    parts.append(f"<h1>{_esc(element.name)}</h1>")

    if element.hierarchy:
        parts.append('<ul class="hierarchy">')
        for fqn in reversed(element.hierarchy):
            ancestor = documentation.elements.get(fqn, f"ancestor of {element.fqn}")
            parts.append(f"<li>{_link(ancestor.fqn, ancestor.href)}</li>")
        parts.append(f"<li>{_esc(element.fqn)}</li>")
        parts.append("</ul>")

    if element.description:
        parts.append(f'<p class="description">{_esc(element.description)}</p>')
    if element.concepts:
        labels = ", ".join(_esc(_concept_label(c)) for c in element.concepts)
        parts.append(f'<p class="concepts">Concepts: {labels}</p>')

    if doc.fields:
        parts.append("<h2>Fields</h2>")
        parts.append("<table><thead><tr><th>Field</th><th>Cardinality</th><th>Description</th></tr></thead><tbody>")
        for field_doc in doc.fields:
            member = field_doc.field
            label = "Value: " + member.display_name if field_doc.is_value else member.display_name
            row_class = ' class="inherited"' if field_doc.inherited else ""
            card = format_card(member.card)
            parts.append(
                f"<tr{row_class}>"
                f'<td class="field-name">{_esc(label)}</td>'
                f"<td>{_esc(card)}</td>"
                f"<td>{_esc(member.description)}</td>"
                "</tr>"
            )
        parts.append("</tbody></table>")

    rows = doc.constraints
    if rows:
        parts.append("<h2>Constraints</h2>")
        parts.append(
            "<table><thead><tr><th>Constraint</th><th>Path</th><th>Value</th>"
            "<th>Source</th><th>Last Modified By</th></tr></thead><tbody>"
        )
        parts.extend(_constraint_row(row) for row in rows)
        parts.append("</tbody></table>")

    parts.append(_footer(project))
    return _page(element.fqn, "\n".join(parts), "../stylesheet.css")


# ---------------------------------------------------------------------------
# File writer
# ---------------------------------------------------------------------------

def write_html_docs(
    documentation: Documentation,
    out_dir: str,
    logger: Optional[logging.Logger] = None,
) -> List[str]:
    """Write every page under ``out_dir``. Returns the written paths."""
    logger = logger or log
    root = Path(out_dir)
    root.mkdir(parents=True, exist_ok=True)
    project = documentation.project
    namespaces = documentation.namespaces.list()
    elements = documentation.elements.list()
    written: List[str] = []

    def _write(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        written.append(str(path))

    _write(root / "stylesheet.css", STYLESHEET)
    _write(root / "index.html", generate_index_page(project))
    _write(root / "overview-frame.html", generate_overview_frame(namespaces, project))
    _write(root / "overview-summary.html", generate_overview_summary(elements, project))
    _write(root / "allclasses-frame.html", generate_allclasses_frame(elements))

    for namespace in namespaces:
        ns_dir = root / namespace.path
        _write(ns_dir / f"{namespace.path}-pkg.html", generate_package_frame(namespace))
        _write(ns_dir / f"{namespace.path}-info.html", generate_info_page(namespace, project))

    logger.info("Building documentation pages for %d elements...", len(elements))
    for element in elements:
        doc = documentation.doc_for(element.fqn)
        _write(root / element.namespace_path / f"{element.name}.html", generate_element_page(doc, documentation))

    logger.info("Wrote %d files to %s", len(written), root)
    return written
