# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Turn declared record members into shader field descriptors.

Shapes come from a static table keyed by the declared type name; nothing is
inspected at runtime. Besides descriptors the extractor collects the static
constants of a type, its debug-view entries and the members that carry
explicit packing directives.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from .debug_view import DebugField, DisplayCategory, category_for
from .directives import PackingScheme
from .errors import (
    E_INVALID_ARRAY,
    E_MIXED_KINDS,
    E_NON_PRIMITIVE_SUBFIELD,
    E_TOO_MANY_SUBFIELDS,
    E_UNSUPPORTED_TYPE,
    ExtractionError,
    extraction_error,
)
from .fields import REGISTER_COMPONENTS, FieldDescriptor, PrimitiveKind
from .model import CompoundType, Member, Model, TypeDef
from .naming import (
    debug_define_name,
    enum_constant_name,
    static_constant_name,
)


@dataclass(frozen=True)
class FieldShape:
    kind: PrimitiveKind
    rows: int = 1
    cols: int = 1


_F = PrimitiveKind.FLOAT
_I = PrimitiveKind.INT
_U = PrimitiveKind.UINT
_B = PrimitiveKind.BOOL

SHAPES: Dict[str, FieldShape] = {
    "float": FieldShape(_F),
    "int": FieldShape(_I),
    "uint": FieldShape(_U),
    "bool": FieldShape(_B),
    "Vector2": FieldShape(_F, 2),
    "Vector3": FieldShape(_F, 3),
    "Vector4": FieldShape(_F, 4),
    "Vector2Int": FieldShape(_I, 2),
    "Vector3Int": FieldShape(_I, 3),
    "UInt4": FieldShape(_U, 4),
    "Matrix4x4": FieldShape(_F, 4, 4),
    # HLSL spellings
    "float2": FieldShape(_F, 2),
    "float3": FieldShape(_F, 3),
    "float4": FieldShape(_F, 4),
    "int2": FieldShape(_I, 2),
    "int3": FieldShape(_I, 3),
    "int4": FieldShape(_I, 4),
    "uint2": FieldShape(_U, 2),
    "uint3": FieldShape(_U, 3),
    "uint4": FieldShape(_U, 4),
    "float4x4": FieldShape(_F, 4, 4),
}

SCALAR_TYPES = ("float", "int", "uint", "bool")

# Every element of a constant-buffer array must fill a whole register.
CBUFFER_ARRAY_ELEMENTS = ("Vector4", "UInt4", "Matrix4x4", "float4", "uint4", "float4x4")

_PRECISION = {
    "standard": PrimitiveKind.FLOAT,
    "half": PrimitiveKind.HALF,
    "real": PrimitiveKind.REAL,
}

_SCHEME_CATEGORY = {
    PackingScheme.PACKED_FLOAT: DisplayCategory.SCALAR,
    PackingScheme.PACKED_UINT: DisplayCategory.INDEX,
    PackingScheme.R11G11B10: DisplayCategory.VEC3,
}


@dataclass
class TypeRegistry:
    """Names a member type can refer to besides the built-in shapes."""

    compounds: Dict[str, CompoundType] = field(default_factory=dict)
    generated: Dict[str, TypeDef] = field(default_factory=dict)

    @classmethod
    def from_model(cls, model: Model) -> "TypeRegistry":
        return cls(
            compounds={c.name: c for c in model.compounds},
            generated={t.name: t for s in model.sources for t in s.types},
        )


@dataclass
class TypeFields:
    type_def: TypeDef
    descriptors: Tuple[FieldDescriptor, ...] = ()
    statics: Dict[str, str] = field(default_factory=dict)
    debug_fields: List[DebugField] = field(default_factory=list)
    packed_members: List[Member] = field(default_factory=list)
    errors: List[ExtractionError] = field(default_factory=list)

    @property
    def has_fields(self) -> bool:
        return len(self.descriptors) > 0

    @property
    def has_packed_info(self) -> bool:
        return len(self.packed_members) > 0


def format_static_value(value) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        return f"{value:.9g}"
    return str(value)


class FieldExtractor:
    def __init__(
        self,
        type_def: TypeDef,
        registry: Optional[TypeRegistry] = None,
        defines_start: int = 1,
    ) -> None:
        self.type_def = type_def
        self.registry = registry or TypeRegistry()
        start = type_def.param_defines_start
        self._debug_next = defines_start if start is None else start

    def extract(self) -> TypeFields:
        """Extract every member; errors are collected, not raised."""
        td = self.type_def
        out = TypeFields(type_def=td)
        if td.is_enum:
            for member, value in td.values.items():
                out.statics[enum_constant_name(td.name, member)] = str(value)
            return out

        descriptors: List[FieldDescriptor] = []
        for member in td.members:
            try:
                desc = self._extract_member(member, out)
            except ExtractionError as e:
                out.errors.append(e)
                continue
            if desc is not None:
                descriptors.append(desc)
        out.descriptors = tuple(descriptors)
        return out

    # -- members -----------------------------------------------------------

    def _ctx(self, member: Member) -> Dict[str, str]:
        return {"type": self.type_def.name, "field": member.name}

    def _extract_member(
        self, member: Member, out: TypeFields
    ) -> Optional[FieldDescriptor]:
        declared, array_size = self._element_type(member)
        if declared is None:
            return None

        if member.static:
            if declared in SCALAR_TYPES and member.value is not None:
                out.statics[static_constant_name(member.name)] = (
                    format_static_value(member.value)
                )
            return None

        surface = member.surface
        preprocessor = surface.preprocessor if surface else ""
        float_kind = _PRECISION.get(
            surface.precision if surface else "standard", PrimitiveKind.FLOAT
        )
        desc = self._descriptor(member, declared, array_size, float_kind, preprocessor)
        if desc is not None and member.packing:
            desc = replace(desc, bit_field=True)

        if self.type_def.needs_param_debug:
            if member.packing:
                self._add_packed_debug(member, desc, out)
            elif desc is not None:
                self._add_debug(member, desc, out)
        if member.packing:
            out.packed_members.append(member)
        return desc

    def _element_type(self, member: Member) -> Tuple[Optional[str], int]:
        """Declared element type and array size, or ``None`` to skip."""
        if member.element is not None or member.array_size is not None:
            if member.element is None or member.array_size is None:
                raise extraction_error(
                    E_INVALID_ARRAY,
                    f"'{member.type} {member.name}' needs both 'array_size' "
                    "and 'element' to be declared as an array",
                    self._ctx(member),
                )
            if (
                self.type_def.generate_cbuffer
                and member.element not in CBUFFER_ARRAY_ELEMENTS
            ):
                raise extraction_error(
                    E_INVALID_ARRAY,
                    f"invalid array element '{member.element}' for "
                    f"'{member.name}', only Vector4, Matrix4x4 and UInt4 are "
                    "supported for arrays in constant buffers",
                    self._ctx(member),
                )
            return member.element, member.array_size
        if member.type.endswith("[]"):
            # Unsized arrays have no register layout.
            return None, 0
        return member.type, 0

    def _descriptor(
        self,
        member: Member,
        declared: str,
        array_size: int,
        float_kind: PrimitiveKind,
        preprocessor: str,
    ) -> Optional[FieldDescriptor]:
        shape = SHAPES.get(declared)
        if shape is not None:
            kind = float_kind if shape.kind.is_float else shape.kind
            return FieldDescriptor(
                name=member.name,
                kind=kind,
                rows=shape.rows,
                cols=shape.cols,
                array_size=array_size,
                comment=member.comment,
                preprocessor=preprocessor,
            )

        nested = self.registry.generated.get(declared)
        if nested is not None:
            if nested.is_enum:
                return FieldDescriptor(
                    name=member.name,
                    kind=PrimitiveKind.INT,
                    array_size=array_size,
                    comment=member.comment or declared,
                    preprocessor=preprocessor,
                )
            return FieldDescriptor(
                name=member.name,
                kind=PrimitiveKind.STRUCT,
                array_size=array_size,
                type_name=nested.name,
                comment=member.comment,
                preprocessor=preprocessor,
            )

        compound = self.registry.compounds.get(declared)
        if compound is not None:
            return self._flatten(member, compound, array_size, preprocessor)

        raise extraction_error(
            E_UNSUPPORTED_TYPE,
            f"unsupported field type '{declared}' for '{member.name}'",
            self._ctx(member),
        )

    def _flatten(
        self,
        member: Member,
        compound: CompoundType,
        array_size: int,
        preprocessor: str,
    ) -> Optional[FieldDescriptor]:
        label = f"'{compound.name} {member.name}'"
        kinds: List[PrimitiveKind] = []
        names: List[str] = []
        for sub in compound.fields:
            if sub.static:
                continue
            if sub.type not in SCALAR_TYPES:
                raise extraction_error(
                    E_NON_PRIMITIVE_SUBFIELD,
                    f"{label} can not be packed into a register, since it "
                    f"contains a non-primitive field type '{sub.type}'",
                    self._ctx(member),
                )
            if len(kinds) == REGISTER_COMPONENTS:
                raise extraction_error(
                    E_TOO_MANY_SUBFIELDS,
                    f"{label} can not be packed into a register because it "
                    f"contains more than {REGISTER_COMPONENTS} fields",
                    self._ctx(member),
                )
            kinds.append(SHAPES[sub.type].kind)
            names.append(sub.name)

        if not kinds:
            return None
        if len(set(kinds)) > 1:
            raise extraction_error(
                E_MIXED_KINDS,
                f"{label} can not be packed into a single register because it "
                "contains mixed basic types",
                self._ctx(member),
            )
        kind = kinds[0]
        comment = member.comment
        if kind is PrimitiveKind.FLOAT and not comment:
            comment = " ".join(f"{c}: {n}" for c, n in zip("xyzw", names))
        return FieldDescriptor(
            name=member.name,
            kind=kind,
            rows=len(kinds),
            array_size=array_size,
            comment=comment,
            preprocessor=preprocessor,
        )

    # -- debug view --------------------------------------------------------

    def _next_debug(self, display_name: str) -> Tuple[str, int]:
        define = debug_define_name(self.type_def.full_name, display_name)
        param_id = self._debug_next
        self._debug_next += 1
        return define, param_id

    def _add_debug(
        self, member: Member, desc: FieldDescriptor, out: TypeFields
    ) -> None:
        surface = member.surface
        names = [member.name]
        if surface and surface.display_names and surface.display_names[0]:
            names = list(surface.display_names)
        category = category_for(desc.kind, desc.rows, desc.cols)
        for display in names:
            define, param_id = self._next_debug(display)
            out.statics[define] = str(param_id)
            out.debug_fields.append(
                DebugField(
                    define_name=define,
                    param_id=param_id,
                    field_name=member.name,
                    category=category,
                    is_direction=bool(surface and surface.is_direction),
                    srgb=bool(surface and surface.srgb),
                    check_normalized=bool(surface and surface.check_normalized),
                    preprocessor=surface.preprocessor if surface else "",
                )
            )

    def _add_packed_debug(
        self, member: Member, desc: Optional[FieldDescriptor], out: TypeFields
    ) -> None:
        for directive in member.packing:
            names = [n for n in directive.display_names if n] or [member.name]
            scheme = PackingScheme.parse(directive.scheme)
            if scheme is PackingScheme.NO_PACKING and desc is not None:
                category = category_for(desc.kind, desc.rows, desc.cols)
            elif scheme is PackingScheme.PACKED_UINT and directive.range is not None:
                category = DisplayCategory.SCALAR
            else:
                category = _SCHEME_CATEGORY.get(scheme, DisplayCategory.INDEX)
            for display in names:
                define, param_id = self._next_debug(display)
                out.statics[define] = str(param_id)
                out.debug_fields.append(
                    DebugField(
                        define_name=define,
                        param_id=param_id,
                        field_name=member.name,
                        category=category,
                        getter="Get" + names[0],
                        is_direction=directive.is_direction,
                        srgb=directive.srgb,
                        check_normalized=directive.check_normalized,
                        preprocessor=directive.preprocessor,
                    )
                )


def extract_members(
    type_def: TypeDef,
    registry: Optional[TypeRegistry] = None,
    defines_start: int = 1,
) -> TypeFields:
    """Extract one type, raising the first :class:`ExtractionError` found."""
    result = FieldExtractor(type_def, registry, defines_start).extract()
    if result.errors:
        raise result.errors[0]
    return result


__all__ = [
    "FieldShape",
    "SHAPES",
    "TypeRegistry",
    "TypeFields",
    "FieldExtractor",
    "extract_members",
    "format_static_value",
]
