# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Debug-view dispatch emission.

Every field with a debug entry gets one ``case`` in a generated
``GetGenerated<Type>Debug`` switch that converts the field value into a
displayable ``float3``. ``GetIndexColor`` and ``IsNormalized`` come from the
shader library including the generated file.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Mapping, Sequence

from .fields import Accessor, PrimitiveKind


class DisplayCategory(Enum):
    SCALAR = "scalar"
    BOOL = "bool"
    VEC2 = "vec2"
    VEC3 = "vec3"
    VEC4 = "vec4"
    INDEX = "index"


def category_for(kind: PrimitiveKind, rows: int = 1, cols: int = 1) -> DisplayCategory:
    """How a value of the given shape is turned into a colour."""
    if cols > 1:
        return DisplayCategory.INDEX
    if kind.is_float:
        return {
            1: DisplayCategory.SCALAR,
            2: DisplayCategory.VEC2,
            3: DisplayCategory.VEC3,
            4: DisplayCategory.VEC4,
        }.get(rows, DisplayCategory.INDEX)
    if kind is PrimitiveKind.BOOL and rows == 1:
        return DisplayCategory.BOOL
    return DisplayCategory.INDEX


@dataclass(frozen=True)
class DebugField:
    define_name: str
    param_id: int
    field_name: str
    category: DisplayCategory
    # Name of the packed getter reading this value; empty for ordinary fields.
    getter: str = ""
    is_direction: bool = False
    srgb: bool = False
    check_normalized: bool = False
    preprocessor: str = ""


def debug_function_name(type_name: str) -> str:
    return f"GetGenerated{type_name}Debug"


def _value_expression(
    field: DebugField, source: str, accessors: Mapping[str, Accessor]
) -> str:
    if field.getter:
        return f"{field.getter}({source})"
    acc = accessors.get(field.field_name)
    if acc is None:
        return f"{source}.{field.field_name}"
    # Arrayed fields display their first element.
    return acc.expression(source, "0")


def convert_to_color(field: DebugField, expr: str) -> str:
    cat = field.category
    if cat is DisplayCategory.SCALAR:
        if field.is_direction:
            return f"{expr}.xxx * 0.5 + 0.5"
        return f"{expr}.xxx"
    if cat is DisplayCategory.VEC2:
        return f"float3({expr}, 0.0)"
    if cat is DisplayCategory.VEC3:
        if field.is_direction and field.check_normalized:
            return (
                f"IsNormalized({expr})? {expr} * 0.5 + 0.5 : "
                "float3(1.0, 0.0, 0.0)"
            )
        if field.is_direction:
            return f"{expr} * 0.5 + 0.5"
        return expr
    if cat is DisplayCategory.VEC4:
        return f"{expr}.xyz"
    if cat is DisplayCategory.BOOL:
        return f"({expr}) ? float3(1.0, 1.0, 1.0) : float3(0.0, 0.0, 0.0)"
    return f"GetIndexColor({expr})"


def emit_debug_function(
    type_name: str,
    fields: Sequence[DebugField],
    accessors: Mapping[str, Accessor] | None = None,
) -> str:
    """Render the debug dispatch function for one type.

    ``accessors`` maps declared field names to their register accessors so
    merged fields are read through the right swizzle.
    """
    accessors = accessors or {}
    source = type_name.lower()
    lines: List[str] = [
        "//",
        "// Debug functions",
        "//",
        f"void {debug_function_name(type_name)}(uint paramId, {type_name} {source}, "
        "inout float3 result, inout bool needLinearToSRGB)",
        "{",
        "    switch (paramId)",
        "    {",
    ]
    for f in fields:
        if f.preprocessor:
            lines.append(f"#if {f.preprocessor}")
        lines.append(f"        case {f.define_name}:")
        expr = _value_expression(f, source, accessors)
        lines.append(f"            result = {convert_to_color(f, expr)};")
        if f.srgb:
            lines.append("            needLinearToSRGB = true;")
        lines.append("            break;")
        if f.preprocessor:
            lines.extend(
                [
                    "#else",
                    f"        case {f.define_name}:",
                    "            result = 0;",
                    "            break;",
                    "#endif",
                ]
            )
    lines.extend(["    }", "}"])
    return "\n".join(lines) + "\n"


__all__ = [
    "DisplayCategory",
    "DebugField",
    "category_for",
    "convert_to_color",
    "debug_function_name",
    "emit_debug_function",
]
