# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""HLSL emission for one generated type.

:class:`TypeEmitter` turns the extracted, packed and resolved view of a type
into typed fragments: static defines, the record declaration, ordinary
accessors/setters/initializers, bit-level functions for packed fields and
the optional debug-view dispatch.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Set, Tuple

from .debug_view import emit_debug_function
from .directives import PackingLayout, PackingScheme
from .errors import E_UNKNOWN_SCHEME, CodegenError, directive_error
from .extractor import TypeFields
from .fields import Accessor, FieldDescriptor, PackedRegister
from .fragments import Fragment, FragmentKind
from .model import DEFAULT_PACKING_INCLUDE, TypeDef
from .naming import function_suffix

INDENT = "    "
UNKNOWN_SCHEME_MARKER = "ERROR_Packing_field_not_specified"


def format_number(value: float) -> str:
    """Shortest literal for a range constant (``2.0`` -> ``2``)."""
    return f"{value:.7g}"


def _banner(*lines: str) -> str:
    body = "".join(f"// {line}\n" for line in lines)
    return "//\n" + body + "//\n"


def emit_defines(full_name: str, statics: Dict[str, str]) -> str:
    text = _banner(f"{full_name}:  static fields")
    for name, value in statics.items():
        text += f"#define {name} ({value})\n"
    return text + "\n"


def _member_line(desc: FieldDescriptor) -> str:
    text = desc.decl_string() + ";"
    if desc.comment:
        text += " // " + desc.comment
    if desc.preprocessor:
        text = f"#if {desc.preprocessor}\n{INDENT}{text}\n{INDENT}#endif"
    return INDENT + text + "\n"


def emit_declaration(type_def: TypeDef, registers: Sequence[PackedRegister]) -> str:
    rules = "Aggressive" if type_def.aggressive else "Exact"
    text = f"// Generated from {type_def.full_name}\n"
    text += f"// PackingRules = {rules}\n"
    if type_def.generate_cbuffer:
        if type_def.constant_register != -1:
            text += (
                f"GLOBAL_CBUFFER_START({type_def.name}, "
                f"b{type_def.constant_register})\n"
            )
        else:
            text += f"CBUFFER_START({type_def.name})\n"
    elif not type_def.omit_struct_declaration:
        text += f"struct {type_def.name}\n{{\n"

    for reg in registers:
        text += _member_line(reg.as_descriptor())

    if type_def.generate_cbuffer:
        text += "CBUFFER_END\n"
    elif not type_def.omit_struct_declaration:
        text += "};\n"
    return text + "\n"


def field_accessors(
    registers: Iterable[PackedRegister],
) -> List[Tuple[FieldDescriptor, Accessor]]:
    """Every declared field with the accessor locating it, in declaration order."""
    return [
        pair for reg in registers for pair in zip(reg.members, reg.accessors())
    ]


class TypeEmitter:
    def __init__(
        self,
        fields: TypeFields,
        registers: Sequence[PackedRegister],
        layouts: Sequence[PackingLayout] = (),
        packing_include: str = DEFAULT_PACKING_INCLUDE,
    ) -> None:
        self.fields = fields
        self.type_def = fields.type_def
        self.registers = tuple(registers)
        self.layouts = tuple(layouts)
        self.packing_include = packing_include
        self.errors: List[CodegenError] = []
        self._source = self.type_def.name.lower()
        self._reported: Set[str] = set()

    @property
    def packed_field_names(self) -> Set[str]:
        names = {m.name for m in self.fields.packed_members}
        names.update(layout.field_name for layout in self.layouts)
        return names

    def _ordinary_fields(self) -> List[Tuple[FieldDescriptor, Accessor]]:
        skip = self.packed_field_names
        return [
            (desc, acc)
            for desc, acc in field_accessors(self.registers)
            if desc.name not in skip
        ]

    # -- ordinary accessors ------------------------------------------------

    def accessors(self) -> str:
        td = self.type_def
        if not (td.needs_accessors and self.fields.has_fields):
            return ""
        pairs = self._ordinary_fields()
        if not pairs:
            return ""
        text = _banner(f"Accessors for {td.full_name}")
        for desc, acc in pairs:
            name = "Get" + function_suffix(desc.name)
            if acc.array_size > 0:
                text += f"{desc.type_string} {name}({td.name} value, int index)\n"
                expr = acc.expression("value", "index")
            else:
                text += f"{desc.type_string} {name}({td.name} value)\n"
                expr = acc.expression("value")
            text += "{\n" + f"{INDENT}return {expr};\n" + "}\n"
        return text

    def setters(self, init: bool = False) -> str:
        td = self.type_def
        if not (td.needs_accessors and td.needs_setters and self.fields.has_fields):
            return ""
        pairs = self._ordinary_fields()
        if not pairs:
            return ""
        prefix = "Init" if init else "Set"
        if init:
            text = _banner(f"Init functions for {td.full_name}")
        else:
            text = _banner(f"Setters for {td.full_name}")
        for desc, acc in pairs:
            name = prefix + function_suffix(desc.name)
            params = f"{desc.type_string} newValue, inout {td.name} value"
            if acc.array_size > 0:
                params += ", int index"
                target = acc.expression("value", "index")
            else:
                target = acc.expression("value")
            if init:
                text += "// Valid only on zero-initialized storage.\n"
            text += f"void {name}({params})\n"
            text += "{\n" + f"{INDENT}{target} = newValue;\n" + "}\n"
        return text

    def initializers(self) -> str:
        return self.setters(init=True)

    # -- packed fields -----------------------------------------------------

    def _unknown(self, layout: PackingLayout) -> str:
        if layout.field_name in self._reported:
            return UNKNOWN_SCHEME_MARKER + "\n"
        self._reported.add(layout.field_name)
        self.errors.append(
            directive_error(
                E_UNKNOWN_SCHEME,
                f"no packing scheme for '{self.type_def.name}.{layout.field_name}'",
                {"type": self.type_def.name, "field": layout.field_name},
            )
        )
        return UNKNOWN_SCHEME_MARKER + "\n"

    def _decoded(self, layout: PackingLayout, expr: str) -> str:
        if not layout.remapped:
            return expr
        lo, hi = layout.value_range
        scaled = f"({expr} * {format_number(hi - lo)})"
        if lo == 0.0:
            return scaled
        sign = "+" if lo > 0 else "-"
        return f"({scaled} {sign} {format_number(abs(lo))})"

    def _normalized(self, layout: PackingLayout, param: str) -> str:
        if not layout.remapped:
            return param
        lo, hi = layout.value_range
        inv = 1.0 / (hi - lo)
        bias = lo * inv
        scaled = f"({param} * {format_number(inv)})"
        if bias == 0.0:
            return scaled
        sign = "-" if bias > 0 else "+"
        return f"({scaled} {sign} {format_number(abs(bias))})"

    def _quantized(self, layout: PackingLayout, param: str) -> str:
        if layout.normalized:
            value = self._normalized(layout, param)
            return f"((uint)(saturate({value}) * {layout.mask}.0))"
        return f"({param} & {layout.mask}u)"

    @staticmethod
    def _shift(layout: PackingLayout) -> str:
        return f" << {layout.bit_offset}" if layout.bit_offset else ""

    def packed_include(self) -> str:
        if not self.layouts:
            return ""
        return f'#include "{self.packing_include}"\n'

    def packed_getters(self) -> str:
        if not self.layouts:
            return ""
        td = self.type_def
        src = self._source
        text = _banner("Accessors for packed fields")
        for layout in self.layouts:
            value_type = layout.value_type
            if value_type is None:
                text += self._unknown(layout)
                continue
            stored = f"{src}.{layout.field_name}"
            scheme = layout.scheme
            if scheme is PackingScheme.PACKED_FLOAT:
                expr = self._decoded(
                    layout,
                    f"UnpackUIntToFloat({stored}, {layout.bit_offset}, {layout.bit_width})",
                )
            elif scheme is PackingScheme.PACKED_UINT:
                expr = f"BitFieldExtract({stored}, {layout.bit_offset}, {layout.bit_width})"
                if layout.normalized:
                    expr = self._decoded(layout, f"({expr} / {layout.mask}.0)")
            elif scheme is PackingScheme.R11G11B10:
                expr = self._decoded(layout, f"UnpackFromR11G11B10f({stored})")
            else:
                expr = f"({stored})"
            text += f"{value_type} Get{layout.display_name}(in {td.name} {src})\n"
            text += "{\n" + f"{INDENT}return {expr};\n" + "}\n"
        return text

    def _store(self, layout: PackingLayout, param: str, init: bool) -> str:
        stored = f"{self._source}.{layout.field_name}"
        scheme = layout.scheme
        if scheme is PackingScheme.R11G11B10:
            return f"{stored} = PackToR11G11B10f({self._normalized(layout, param)});"
        if scheme is PackingScheme.NO_PACKING:
            return f"{stored} = {param};"
        shift = self._shift(layout)
        value = self._quantized(layout, param)
        if init:
            return f"{stored} |= {value}{shift};"
        return (
            f"{stored} = BitFieldInsert({layout.mask}u{shift}, "
            f"{value}{shift}, {stored});"
        )

    def _packed_functions(self, init: bool) -> str:
        td = self.type_def
        src = self._source
        if init:
            text = _banner(
                "Init functions for packed fields.",
                "Important: Init functions assume the field is filled with 0s, "
                "use setters otherwise.",
            )
        else:
            text = _banner("Setters for packed fields")
        prefix = "Init" if init else "Set"
        for layout in self.layouts:
            value_type = layout.value_type
            if value_type is None:
                text += self._unknown(layout)
                continue
            param = "new" + layout.display_name
            text += (
                f"void {prefix}{layout.display_name}({value_type} {param}, "
                f"inout {td.name} {src})\n"
            )
            text += "{\n" + f"{INDENT}{self._store(layout, param, init)}\n" + "}\n"
        return text

    def packed_setters(self) -> str:
        if not self.layouts:
            return ""
        return self._packed_functions(init=False)

    def packed_initializers(self) -> str:
        if not self.layouts:
            return ""
        return self._packed_functions(init=True) + "\n"

    # -- debug view --------------------------------------------------------

    def debug(self) -> str:
        td = self.type_def
        if not (td.needs_param_debug and self.fields.debug_fields):
            return ""
        accessors = {acc.field_name: acc for _, acc in field_accessors(self.registers)}
        return emit_debug_function(td.name, self.fields.debug_fields, accessors) + "\n"

    # -- assembly ----------------------------------------------------------

    def fragments(self, owner: int = 0) -> List[Fragment]:
        """All non-empty fragments of this type, tagged with ``owner``."""
        td = self.type_def
        statics = self.fields.statics
        out: List[Fragment] = []

        def add(kind: FragmentKind, text: str) -> None:
            if text:
                out.append(Fragment(kind=kind, text=text, owner=owner))

        if statics:
            add(FragmentKind.DEFINES, emit_defines(td.full_name, statics))
        if self.fields.has_fields:
            add(FragmentKind.DECLARATION, emit_declaration(td, self.registers))
        add(FragmentKind.ACCESSORS, self.accessors())
        add(FragmentKind.SETTERS, self.setters())
        add(FragmentKind.INITIALIZERS, self.initializers())
        if self.layouts:
            add(FragmentKind.PACKED_INCLUDE, self.packed_include())
            add(FragmentKind.PACKED_GETTERS, self.packed_getters())
            add(FragmentKind.PACKED_SETTERS, self.packed_setters())
            add(FragmentKind.PACKED_INITIALIZERS, self.packed_initializers())
            add(FragmentKind.PACKED_DEBUG, self.debug())
        else:
            add(FragmentKind.DEBUG, self.debug())
        return out


__all__ = [
    "UNKNOWN_SCHEME_MARKER",
    "TypeEmitter",
    "emit_defines",
    "emit_declaration",
    "field_accessors",
    "format_number",
]
