# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Schema resolution, one-pass normalization, and JSON Schema validation."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import jsonschema

from .errors import E_SPEC_INVALID, spec_error

SCHEMA_FILE_NAME = "ShaderTypes.schema.json"


def find_schema(explicit_path: str | None, input_path: str | None) -> Path | None:
    """Resolve ShaderTypes.schema.json according to priority:
    1. explicit_path (if provided)
    2. schema file next to the input document
    3. schema shipped with this package

    Returns the Path or None if not found.
    """
    if explicit_path:
        p = Path(explicit_path)
        if p.exists():
            return p
    if input_path:
        sib = Path(input_path).with_name(SCHEMA_FILE_NAME)
        if sib.exists():
            return sib
    packaged = Path(__file__).resolve().parent / SCHEMA_FILE_NAME
    if packaged.exists():
        return packaged
    return None


def _as_list(val: Any) -> List[Any]:
    if val is None:
        return []
    if isinstance(val, list):
        return val
    return [val]


def _normalize_member(m: Dict[str, Any]) -> None:
    surface = m.get("surface")
    if isinstance(surface, dict):
        if "display_names" in surface:
            surface["display_names"] = _as_list(surface.get("display_names"))
        prec = surface.get("precision")
        if isinstance(prec, str):
            surface["precision"] = prec.lower()
    if "packing" in m:
        m["packing"] = _as_list(m.get("packing"))
        for p in m["packing"]:
            if isinstance(p, dict) and "display_names" in p:
                p["display_names"] = _as_list(p.get("display_names"))


def normalize_doc(doc: Dict[str, Any]) -> Dict[str, Any]:
    """One-pass normalization of doc in-place and return it.

    - type.kind / type.packing_rules / surface.precision -> lowercase
    - display_names and packing directives -> lists
    """
    for c in doc.get("compounds", []) or []:
        for m in c.get("fields", []) or []:
            if isinstance(m, dict):
                _normalize_member(m)

    for s in doc.get("sources", []) or []:
        for t in s.get("types", []) or []:
            for key in ("kind", "packing_rules"):
                val = t.get(key)
                if isinstance(val, str):
                    t[key] = val.lower()
            for m in t.get("members", []) or []:
                if isinstance(m, dict):
                    _normalize_member(m)
    return doc


def validate_against_schema(
    doc: Dict[str, Any], schema_path: str | Path | None
) -> bool:
    """Validate doc against JSON Schema when available.

    Returns True on success; raises SpecError on validation failures and
    RuntimeError when the schema itself cannot be loaded.
    """
    if schema_path is None:
        return True
    p = Path(schema_path)
    if not p.exists():
        return True
    try:
        with p.open("r", encoding="utf-8") as f:
            schema = json.load(f)
    except (OSError, ValueError) as e:
        raise RuntimeError(f"Failed to load schema at {p}: {e}") from e
    try:
        jsonschema.validate(instance=doc, schema=schema)
    except jsonschema.ValidationError as e:
        path = "->".join(str(x) for x in e.path) if e.path else "(root)"
        raise spec_error(
            E_SPEC_INVALID,
            f"document validation failed at {path}: {e.message}",
            {"path": path},
        ) from e
    return True
