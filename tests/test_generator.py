# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""End-to-end generation into a temporary directory."""

import json
import os
import stat

from shadertype_codegen.errors import (
    E_ARRAY_SIZE,
    E_DUP_TYPE_NAME,
    E_MATRIX_MERGE,
    E_SPEC_INVALID,
    E_WRITE_ACCESS,
)
from shadertype_codegen.generator import generate, load_document, validate
from shadertype_codegen.logging import configure_logging

LIGHTING = """\
meta:
  version: "1.2.0"
defaults:
  packing_include: "Lib/Packing.hlsl"
sources:
  - path: Runtime/Lighting.cs
    types:
      - name: LightData
        full_name: Render.LightData
        packing_rules: Aggressive
        needs_setters: true
        members:
          - { name: maxLights, type: int, static: true, value: 64 }
          - { name: x, type: float }
          - { name: y, type: float }
          - { name: z, type: float }
          - { name: w, type: float }
          - name: bits
            type: uint
            packing:
              - { display_names: [Roughness], scheme: PackedFloat, offset: 0, width: 8 }
      - name: LightKind
        kind: enum
        values: { Point: 0, Spot: 1 }
    bindings:
      - { name: m_Lights, type: ComputeBuffer, inner_type: LightData }
      - { name: m_Broken, type: "Vector4[]" }
    keywords:
      - { name: USE_FOG }
    kernels:
      - { name: CSMain }
"""


def _target(tmp_path, suffix=".hlsl"):
    return tmp_path / "Runtime" / f"Lighting.cs{suffix}"


def test_generate_writes_main_and_pragmas(tmp_path, write_doc):
    doc = write_doc(LIGHTING)
    result = generate(doc)
    main = _target(tmp_path).read_text(encoding="utf-8")
    assert "// Source: types.yaml\n" in main
    assert "// Source-Version: 1.2.0\n" in main
    assert "#ifndef LIGHTING_CS_HLSL\n#define LIGHTING_CS_HLSL\n" in main
    assert "#define MAX_LIGHTS (64)\n" in main
    assert "#define LIGHTKIND_SPOT (1)\n" in main
    assert "    float4 x_y_z_w;\n    uint bits;\n" in main
    assert "float GetY(LightData value)\n" in main
    assert '#include "Lib/Packing.hlsl"\n' in main
    assert "float GetRoughness(in LightData lightdata)\n" in main
    assert "StructuredBuffer<LightData> Lights;\n" in main
    assert main.rstrip().endswith("#endif")
    # Declarations precede accessors, packed helpers and bindings.
    order = [
        main.index("#define MAX_LIGHTS"),
        main.index("struct LightData"),
        main.index("GetY("),
        main.index("GetRoughness("),
        main.index("StructuredBuffer<"),
    ]
    assert order == sorted(order)

    pragmas = _target(tmp_path, ".pragmas.hlsl").read_text(encoding="utf-8")
    assert "#ifndef LIGHTING_CS_PRAGMAS_HLSL\n" in pragmas
    assert "#pragma multi_compile __ USE_FOG\n#pragma kernel CSMain\n" in pragmas

    # The broken binding is dropped and reported, everything else survives.
    assert [e.code for e in result.all_errors] == [E_ARRAY_SIZE]
    assert not result.ok
    assert "m_Broken" not in main and "Broken" not in main


def test_second_run_is_up_to_date(tmp_path, write_doc):
    doc = write_doc(LIGHTING)
    first = generate(doc)
    assert len(first.written) == 2
    second = generate(doc)
    assert second.written == []
    assert sorted(p.name for p in second.units[0].unchanged) == [
        "Lighting.cs.hlsl",
        "Lighting.cs.pragmas.hlsl",
    ]


def test_out_dir_and_packing_include_override(tmp_path, write_doc):
    doc = write_doc(LIGHTING)
    out = tmp_path / "generated"
    generate(doc, out, packing_include="Other/Packing.hlsl", jobs=1)
    main = (out / "Runtime" / "Lighting.cs.hlsl").read_text(encoding="utf-8")
    assert '#include "Other/Packing.hlsl"\n' in main
    assert not _target(tmp_path).exists()


def test_packing_error_aborts_only_that_type(tmp_path, write_doc):
    doc = write_doc(
        """\
        meta: { version: "1.0.0" }
        sources:
          - path: Shapes.cs
            types:
              - name: Bad
                packing_rules: aggressive
                members:
                  - { name: a, type: float }
                  - { name: m, type: Matrix4x4 }
              - name: Good
                members:
                  - { name: a, type: float }
        """
    )
    result = generate(doc)
    codes = [e.code for e in result.all_errors]
    assert codes == [E_MATRIX_MERGE]
    text = (tmp_path / "Shapes.cs.hlsl").read_text(encoding="utf-8")
    assert "struct Good\n" in text
    assert "struct Bad" not in text
    assert "GetA(Good value)" in text


def test_empty_type_has_no_declaration(tmp_path, write_doc):
    doc = write_doc(
        """\
        meta: { version: "1.0.0" }
        sources:
          - path: Empty.cs
            types:
              - { name: Nothing }
        """
    )
    result = generate(doc)
    assert result.ok
    text = (tmp_path / "Empty.cs.hlsl").read_text(encoding="utf-8")
    assert "struct Nothing" not in text
    assert "GetNothing" not in text
    assert not (tmp_path / "Empty.cs.pragmas.hlsl").exists()


def test_read_only_target_is_skipped(tmp_path, write_doc, silent_reporter):
    configure_logging(0)
    doc = write_doc(LIGHTING)
    target = _target(tmp_path)
    target.parent.mkdir(parents=True)
    target.write_text("old", encoding="utf-8")
    os.chmod(target, stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH)
    try:
        result = generate(doc)
        assert E_WRITE_ACCESS in [e.code for e in result.all_errors]
        assert target.read_text(encoding="utf-8") == "old"
        assert target in result.units[0].skipped
        # The pragmas include of the same unit is still written.
        assert _target(tmp_path, ".pragmas.hlsl").exists()
        assert silent_reporter.error_count >= 1
    finally:
        os.chmod(target, stat.S_IRUSR | stat.S_IWUSR)


def test_custom_include_is_appended(tmp_path, write_doc):
    doc = write_doc(LIGHTING)
    custom = tmp_path / "Runtime" / "Lighting.custom.hlsl"
    custom.parent.mkdir(parents=True)
    custom.write_text("// user code\n", encoding="utf-8")
    generate(doc)
    main = _target(tmp_path).read_text(encoding="utf-8")
    assert main.endswith('#endif\n#include "Lighting.custom.hlsl"\n')
    pragmas = _target(tmp_path, ".pragmas.hlsl").read_text(encoding="utf-8")
    assert pragmas.endswith('#include "Lighting.custom.hlsl"\n')


def test_emit_json_manifest(tmp_path, write_doc):
    doc = write_doc(LIGHTING)
    generate(doc, emit_json=True)
    manifest = json.loads(_target(tmp_path, ".fields.json").read_text(encoding="utf-8"))
    assert manifest["target"] == "Lighting.cs.hlsl"
    light = manifest["types"][0]
    assert light["name"] == "LightData"
    assert [(f["name"], f["register"], f["swizzle_offset"]) for f in light["fields"]] == [
        ("x", "x_y_z_w", 0),
        ("y", "x_y_z_w", 1),
        ("z", "x_y_z_w", 2),
        ("w", "x_y_z_w", 3),
        ("bits", "bits", 0),
    ]
    assert light["packed"][0]["display_names"] == ["Roughness"]
    assert light["packed"][0]["width"] == 8
    kinds = manifest["types"][1]
    assert kinds["values"] == {"LIGHTKIND_POINT": "0", "LIGHTKIND_SPOT": "1"}


def test_dry_run_writes_nothing(tmp_path, write_doc):
    doc = write_doc(LIGHTING)
    result = generate(doc, dry_run=True, emit_json=True)
    assert result.written == []
    assert not (tmp_path / "Runtime").exists()
    planned = sorted(p.name for p in result.units[0].outputs)
    assert planned == [
        "Lighting.cs.fields.json",
        "Lighting.cs.hlsl",
        "Lighting.cs.pragmas.hlsl",
    ]


def test_invalid_version_is_rejected(tmp_path, write_doc):
    doc = write_doc(
        """\
        meta: { version: "one" }
        sources: []
        """
    )
    result = generate(doc)
    assert [e.code for e in result.errors] == [E_SPEC_INVALID]
    assert result.units == []


def test_schema_violation_is_rejected(tmp_path, write_doc):
    doc = write_doc(
        """\
        meta: { version: "1.0.0" }
        sources:
          - path: A.cs
            types:
              - { name: T, packing_rules: sloppy }
        """
    )
    result = generate(doc)
    assert [e.code for e in result.errors] == [E_SPEC_INVALID]
    assert not (tmp_path / "A.cs.hlsl").exists()


def test_duplicate_type_names(write_doc):
    doc = write_doc(
        """\
        meta: { version: "1.0.0" }
        sources:
          - path: A.cs
            types: [{ name: T }]
          - path: B.cs
            types: [{ name: T }]
        """
    )
    result = generate(doc)
    assert [e.code for e in result.errors] == [E_DUP_TYPE_NAME]


def test_types_reference_each_other_across_sources(tmp_path, write_doc):
    doc = write_doc(
        """\
        meta: { version: "1.0.0" }
        sources:
          - path: A.cs
            types:
              - name: Inner
                members: [{ name: v, type: Vector4 }]
          - path: B.cs
            types:
              - name: Outer
                members: [{ name: inner, type: Inner }]
        """
    )
    assert generate(doc, jobs=2).ok
    text = (tmp_path / "B.cs.hlsl").read_text(encoding="utf-8")
    assert "    Inner inner;\n" in text
    assert "Inner GetInner(Outer value)\n" in text


def test_validate_reports_without_writing(tmp_path, write_doc):
    doc = write_doc(LIGHTING)
    result = validate(doc)
    assert [e.code for e in result.all_errors] == [E_ARRAY_SIZE]
    assert not (tmp_path / "Runtime").exists()


def test_load_document_builds_model(write_doc):
    model = load_document(write_doc(LIGHTING))
    assert model.defaults.packing_include == "Lib/Packing.hlsl"
    light = model.sources[0].types[0]
    assert light.aggressive
    bits = next(m for m in light.members if m.name == "bits")
    assert bits.packing[0].display_names == ["Roughness"]
