# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

import pytest

from shadertype_codegen.debug_view import (
    DebugField,
    DisplayCategory,
    category_for,
    convert_to_color,
    emit_debug_function,
)
from shadertype_codegen.fields import PrimitiveKind
from shadertype_codegen.emitter import TypeEmitter
from shadertype_codegen.extractor import FieldExtractor
from shadertype_codegen.fragments import FragmentKind
from shadertype_codegen.model import Member, SurfaceAttributes, TypeDef
from shadertype_codegen.packer import pack_fields


@pytest.mark.parametrize(
    "kind,rows,cols,expected",
    [
        (PrimitiveKind.FLOAT, 1, 1, DisplayCategory.SCALAR),
        (PrimitiveKind.HALF, 2, 1, DisplayCategory.VEC2),
        (PrimitiveKind.FLOAT, 3, 1, DisplayCategory.VEC3),
        (PrimitiveKind.FLOAT, 4, 1, DisplayCategory.VEC4),
        (PrimitiveKind.FLOAT, 4, 4, DisplayCategory.INDEX),
        (PrimitiveKind.BOOL, 1, 1, DisplayCategory.BOOL),
        (PrimitiveKind.UINT, 1, 1, DisplayCategory.INDEX),
    ],
)
def test_category_for(kind, rows, cols, expected):
    assert category_for(kind, rows, cols) is expected


def _field(category, **kw):
    return DebugField("DEBUGVIEW_X", 1, "x", category, **kw)


def test_convert_to_color():
    assert convert_to_color(_field(DisplayCategory.SCALAR), "v") == "v.xxx"
    assert (
        convert_to_color(_field(DisplayCategory.SCALAR, is_direction=True), "v")
        == "v.xxx * 0.5 + 0.5"
    )
    assert convert_to_color(_field(DisplayCategory.VEC2), "v") == "float3(v, 0.0)"
    assert convert_to_color(_field(DisplayCategory.VEC4), "v") == "v.xyz"
    assert convert_to_color(_field(DisplayCategory.INDEX), "v") == "GetIndexColor(v)"
    assert convert_to_color(
        _field(DisplayCategory.VEC3, is_direction=True, check_normalized=True), "n"
    ) == "IsNormalized(n)? n * 0.5 + 0.5 : float3(1.0, 0.0, 0.0)"


def test_debug_function_golden():
    fields = [
        DebugField("DEBUGVIEW_SURFACE_ALBEDO", 1, "albedo", DisplayCategory.VEC3, srgb=True),
        DebugField(
            "DEBUGVIEW_SURFACE_MASK", 2, "mask", DisplayCategory.BOOL,
            preprocessor="USE_MASK",
        ),
    ]
    assert emit_debug_function("Surface", fields) == (
        "//\n"
        "// Debug functions\n"
        "//\n"
        "void GetGeneratedSurfaceDebug(uint paramId, Surface surface, "
        "inout float3 result, inout bool needLinearToSRGB)\n"
        "{\n"
        "    switch (paramId)\n"
        "    {\n"
        "        case DEBUGVIEW_SURFACE_ALBEDO:\n"
        "            result = surface.albedo;\n"
        "            needLinearToSRGB = true;\n"
        "            break;\n"
        "#if USE_MASK\n"
        "        case DEBUGVIEW_SURFACE_MASK:\n"
        "            result = (surface.mask) ? float3(1.0, 1.0, 1.0) : float3(0.0, 0.0, 0.0);\n"
        "            break;\n"
        "#else\n"
        "        case DEBUGVIEW_SURFACE_MASK:\n"
        "            result = 0;\n"
        "            break;\n"
        "#endif\n"
        "    }\n"
        "}\n"
    )


def test_debug_reads_merged_fields_through_swizzle():
    td = TypeDef(
        name="Point",
        full_name="Point",
        packing_rules="aggressive",
        needs_param_debug=True,
        members=[Member("x", "float"), Member("y", "float")],
    )
    fields = FieldExtractor(td).extract()
    em = TypeEmitter(fields, pack_fields(fields.descriptors, True))
    text = em.debug()
    assert "result = point.x_y.y.xxx;" in text
    kinds = [f.kind for f in em.fragments()]
    assert FragmentKind.DEBUG in kinds
    assert FragmentKind.PACKED_DEBUG not in kinds


def test_debug_array_shows_first_element():
    td = TypeDef(
        name="L",
        full_name="L",
        needs_param_debug=True,
        members=[
            Member("colors", "Vector4[]", array_size=2, element="Vector4",
                   surface=SurfaceAttributes(srgb=True)),
        ],
    )
    fields = FieldExtractor(td).extract()
    em = TypeEmitter(fields, pack_fields(fields.descriptors, False))
    assert "result = l.colors[0].xyz;" in em.debug()
