from pathlib import Path
from typing import Any, Dict, List

import yaml

_MODEL_SUFFIXES = {".json", ".yaml", ".yml"}


def _read_document(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ValueError(f"Model file {path} must parse to an object/map at root.")

    return data


def _merge_directory(root: Path) -> Dict[str, Any]:
    merged: Dict[str, Any] = {"projectInfo": {}, "namespaces": {}, "dataElements": []}
    files: List[Path] = sorted(
        p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in _MODEL_SUFFIXES
    )
    for path in files:
        data = _read_document(path)
        if path.name == "project.json" and "projectInfo" not in data:
            merged["projectInfo"].update(data)
            continue
        merged["projectInfo"].update(data.get("projectInfo") or {})
        merged["namespaces"].update(data.get("namespaces") or {})
        merged["dataElements"].extend(data.get("dataElements") or [])
    return merged


def load_cimcore(path: str) -> Dict[str, Any]:
    """Read a cimcore export from a JSON/YAML file or a directory of them."""
    model_path = Path(path)
    if not model_path.exists():
        raise FileNotFoundError(f"Model file not found: {path}")

    if model_path.is_dir():
        return _merge_directory(model_path)

    return _read_document(model_path)
