# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Typed data model for the shader type codegen pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import E_DUP_TYPE_NAME, E_SPEC_INVALID, spec_error

DEFAULT_PACKING_INCLUDE = (
    "Packages/com.unity.render-pipelines.core/ShaderLibrary/Packing.hlsl"
)


@dataclass
class Meta:
    version: Optional[str] = None
    schema_version: Optional[str] = None
    description: Optional[str] = None
    source: Optional[str] = None


@dataclass
class Defaults:
    packing_include: str = DEFAULT_PACKING_INCLUDE
    param_defines_start: int = 1
    generator_command: str = "shadertype-codegen"


@dataclass
class SurfaceAttributes:
    display_names: List[str] = field(default_factory=list)
    is_direction: bool = False
    srgb: bool = False
    check_normalized: bool = False
    precision: str = "standard"
    preprocessor: str = ""


@dataclass
class PackingDirective:
    display_names: List[str] = field(default_factory=list)
    scheme: Optional[str] = None
    offset: int = 0
    width: Optional[int] = None
    range: Optional[List[float]] = None
    is_direction: bool = False
    srgb: bool = False
    check_normalized: bool = False
    preprocessor: str = ""


@dataclass
class Member:
    name: str
    type: str
    static: bool = False
    value: Any = None
    array_size: Optional[int] = None
    element: Optional[str] = None
    comment: str = ""
    surface: Optional[SurfaceAttributes] = None
    packing: List[PackingDirective] = field(default_factory=list)
    # Explicit request for ordinary accessors on this member (None = inherit)
    accessors: Optional[bool] = None


@dataclass
class CompoundType:
    name: str
    fields: List[Member] = field(default_factory=list)


@dataclass
class TypeDef:
    name: str
    full_name: str
    kind: str = "struct"  # struct|enum
    packing_rules: str = "exact"  # exact|aggressive
    needs_accessors: bool = True
    needs_setters: bool = False
    needs_param_debug: bool = False
    param_defines_start: Optional[int] = None
    generate_cbuffer: bool = False
    constant_register: int = -1
    omit_struct_declaration: bool = False
    members: List[Member] = field(default_factory=list)
    values: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_enum(self) -> bool:
        return self.kind == "enum"

    @property
    def aggressive(self) -> bool:
        return self.packing_rules == "aggressive"


@dataclass
class Binding:
    name: str
    type: str
    target: Optional[str] = None
    hlsl_type: Optional[str] = None
    inner_type: Optional[str] = None
    half: bool = False
    globally_coherent: bool = False
    add_rw: bool = False
    is_uav: bool = False
    array_size: int = 0
    is_tex_array: bool = False
    tex_dimension: int = 2


@dataclass
class KeywordValue:
    name: str
    target: Optional[str] = None


@dataclass
class Keyword:
    name: str
    target: Optional[str] = None
    local: bool = False
    values: List[KeywordValue] = field(default_factory=list)


@dataclass
class Kernel:
    name: str
    target: Optional[str] = None


@dataclass
class Source:
    path: str
    types: List[TypeDef] = field(default_factory=list)
    bindings: List[Binding] = field(default_factory=list)
    keywords: List[Keyword] = field(default_factory=list)
    kernels: List[Kernel] = field(default_factory=list)


@dataclass
class Model:
    meta: Meta
    defaults: Defaults
    compounds: List[CompoundType]
    sources: List[Source]


def _as_list(val: Any) -> List[Any]:
    if val is None:
        return []
    if isinstance(val, list):
        return val
    return [val]


def _coerce_int(val: Any) -> Optional[int]:
    if val is None:
        return None
    if isinstance(val, int):
        return val
    try:
        return int(val)
    except (TypeError, ValueError):
        return None


def _build_surface(d: Optional[Dict[str, Any]]) -> Optional[SurfaceAttributes]:
    if d is None:
        return None
    return SurfaceAttributes(
        display_names=[str(n) for n in _as_list(d.get("display_names"))],
        is_direction=bool(d.get("is_direction", False)),
        srgb=bool(d.get("srgb", False)),
        check_normalized=bool(d.get("check_normalized", False)),
        precision=str(d.get("precision") or "standard"),
        preprocessor=str(d.get("preprocessor") or ""),
    )


def _build_packing(d: Dict[str, Any]) -> PackingDirective:
    rng = d.get("range")
    return PackingDirective(
        display_names=[str(n) for n in _as_list(d.get("display_names"))],
        scheme=d.get("scheme"),
        offset=_coerce_int(d.get("offset")) or 0,
        width=_coerce_int(d.get("width")),
        range=[float(v) for v in rng] if rng is not None else None,
        is_direction=bool(d.get("is_direction", False)),
        srgb=bool(d.get("srgb", False)),
        check_normalized=bool(d.get("check_normalized", False)),
        preprocessor=str(d.get("preprocessor") or ""),
    )


def _build_member(d: Dict[str, Any]) -> Member:
    return Member(
        name=d.get("name"),
        type=str(d.get("type")),
        static=bool(d.get("static", False)),
        value=d.get("value"),
        array_size=_coerce_int(d.get("array_size")),
        element=d.get("element"),
        comment=str(d.get("comment") or ""),
        surface=_build_surface(d.get("surface")),
        packing=[_build_packing(p) for p in _as_list(d.get("packing"))],
        accessors=d.get("accessors"),
    )


def _build_type(d: Dict[str, Any]) -> TypeDef:
    name = d.get("name")
    start = _coerce_int(d.get("param_defines_start"))
    register = _coerce_int(d.get("constant_register"))
    return TypeDef(
        name=name,
        full_name=d.get("full_name") or name,
        kind=d.get("kind") or "struct",
        packing_rules=d.get("packing_rules") or "exact",
        needs_accessors=bool(d.get("needs_accessors", True)),
        needs_setters=bool(d.get("needs_setters", False)),
        needs_param_debug=bool(d.get("needs_param_debug", False)),
        param_defines_start=start,
        generate_cbuffer=bool(d.get("generate_cbuffer", False)),
        constant_register=-1 if register is None else register,
        omit_struct_declaration=bool(d.get("omit_struct_declaration", False)),
        members=[_build_member(m) for m in d.get("members") or []],
        values=dict(d.get("values") or {}),
    )


def _build_binding(d: Dict[str, Any]) -> Binding:
    return Binding(
        name=d.get("name"),
        type=str(d.get("type")),
        target=d.get("target"),
        hlsl_type=d.get("hlsl_type"),
        inner_type=d.get("inner_type"),
        half=bool(d.get("half", False)),
        globally_coherent=bool(d.get("globally_coherent", False)),
        add_rw=bool(d.get("add_rw", False)),
        is_uav=bool(d.get("is_uav", False)),
        array_size=_coerce_int(d.get("array_size")) or 0,
        is_tex_array=bool(d.get("is_tex_array", False)),
        tex_dimension=_coerce_int(d.get("tex_dimension")) or 2,
    )


def _build_keyword(d: Dict[str, Any]) -> Keyword:
    values: List[KeywordValue] = []
    for v in _as_list(d.get("values")):
        if isinstance(v, dict):
            values.append(KeywordValue(name=v.get("name"), target=v.get("target")))
        else:
            values.append(KeywordValue(name=str(v)))
    return Keyword(
        name=d.get("name"),
        target=d.get("target"),
        local=bool(d.get("local", False)),
        values=values,
    )


def build_model(doc: Dict[str, Any]) -> Model:
    meta = Meta(**(doc.get("meta") or {}))
    defaults = Defaults(**(doc.get("defaults") or {}))

    compounds: List[CompoundType] = []
    for c in doc.get("compounds") or []:
        compounds.append(
            CompoundType(
                name=c.get("name"),
                fields=[_build_member(m) for m in c.get("fields") or []],
            )
        )

    sources: List[Source] = []
    for s in doc.get("sources") or []:
        if not s.get("path"):
            raise spec_error(E_SPEC_INVALID, "every source needs a 'path'")
        sources.append(
            Source(
                path=str(s.get("path")),
                types=[_build_type(t) for t in s.get("types") or []],
                bindings=[_build_binding(b) for b in s.get("bindings") or []],
                keywords=[_build_keyword(k) for k in s.get("keywords") or []],
                kernels=[
                    Kernel(name=k.get("name"), target=k.get("target"))
                    for k in s.get("kernels") or []
                ],
            )
        )

    seen: Dict[str, str] = {}
    for s in sources:
        for t in s.types:
            if t.name in seen:
                raise spec_error(
                    E_DUP_TYPE_NAME,
                    f"type '{t.name}' declared in both '{seen[t.name]}' and '{s.path}'",
                    {"type": t.name},
                )
            seen[t.name] = s.path

    return Model(
        meta=meta, defaults=defaults, compounds=compounds, sources=sources
    )
