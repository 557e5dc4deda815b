# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Packing directive resolution and the host-side codec."""

import pytest

from shadertype_codegen.directives import (
    DirectiveResolver,
    PackingLayout,
    PackingScheme,
    decode_value,
    encode_value,
    init_bits,
    insert_bits,
    pack_r11g11b10f,
    unpack_r11g11b10f,
)
from shadertype_codegen.errors import (
    E_ACCESSOR_CONFLICT,
    E_BIT_RANGE,
    E_UNKNOWN_SCHEME,
    E_UNRECOGNIZED_TYPE,
    E_VALUE_RANGE,
    DirectiveError,
)
from shadertype_codegen.model import Member, PackingDirective


def _member(directives, type_="uint", name="packed", **kw):
    return Member(name=name, type=type_, packing=list(directives), **kw)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("PackedFloat", PackingScheme.PACKED_FLOAT),
        ("packed_uint", PackingScheme.PACKED_UINT),
        ("r11g11b10", PackingScheme.R11G11B10),
        ("No Packing", PackingScheme.NO_PACKING),
        ("Unknown", None),
        (None, None),
    ],
)
def test_scheme_parse(text, expected):
    assert PackingScheme.parse(text) is expected


def test_resolve_builds_layout():
    d = PackingDirective(
        display_names=["Roughness"], scheme="PackedFloat", offset=8, width=8
    )
    layout = DirectiveResolver().resolve("Surface", _member([d]), d)
    assert layout.scheme is PackingScheme.PACKED_FLOAT
    assert (layout.bit_offset, layout.bit_width) == (8, 8)
    assert layout.mask == 255
    assert layout.display_name == "Roughness"
    assert layout.value_type == "float"
    assert not layout.remapped


def test_display_name_defaults_to_field_name():
    d = PackingDirective(scheme="PackedUint", width=4)
    layout = DirectiveResolver().resolve("Surface", _member([d], name="flags"), d)
    assert layout.display_names == ("flags",)


def test_resolver_caches_per_member_and_index():
    d0 = PackingDirective(display_names=["A"], scheme="PackedUint", width=4)
    d1 = PackingDirective(display_names=["B"], scheme="PackedUint", offset=4, width=4)
    member = _member([d0, d1])
    resolver = DirectiveResolver()
    first = resolver.resolve_member("T", member)
    second = resolver.resolve_member("T", member)
    assert len(resolver) == 2
    assert first[0] is second[0]
    assert first[1] is second[1]
    assert [layout.display_name for layout in first] == ["A", "B"]


def test_unknown_scheme():
    d = PackingDirective(scheme="Bogus", width=4)
    with pytest.raises(DirectiveError) as ei:
        DirectiveResolver().resolve("T", _member([d]), d)
    assert ei.value.code == E_UNKNOWN_SCHEME


@pytest.mark.parametrize(
    "offset,width",
    [(0, None), (0, 0), (0, 33), (30, 4)],
)
def test_bit_range_errors(offset, width):
    d = PackingDirective(scheme="PackedUint", offset=offset, width=width)
    with pytest.raises(DirectiveError) as ei:
        DirectiveResolver().resolve("T", _member([d]), d)
    assert ei.value.code == E_BIT_RANGE


def test_bit_field_needs_uint_backing():
    d = PackingDirective(scheme="PackedFloat", width=8)
    with pytest.raises(DirectiveError) as ei:
        DirectiveResolver().resolve("T", _member([d], type_="float"), d)
    assert ei.value.code == E_UNRECOGNIZED_TYPE


def test_no_packing_needs_native_type():
    d = PackingDirective(scheme="NoPacking")
    layout = DirectiveResolver().resolve("T", _member([d], type_="Vector3"), d)
    assert layout.value_type == "float3"
    assert layout.bit_width == 0
    with pytest.raises(DirectiveError) as ei:
        DirectiveResolver().resolve("T", _member([d], type_="Matrix4x4"), d)
    assert ei.value.code == E_UNRECOGNIZED_TYPE


def test_degenerate_range():
    d = PackingDirective(scheme="PackedFloat", width=8, range=[2.0, 2.0])
    with pytest.raises(DirectiveError) as ei:
        DirectiveResolver().resolve("T", _member([d]), d)
    assert ei.value.code == E_VALUE_RANGE


def test_packing_and_accessors_conflict():
    d = PackingDirective(scheme="PackedUint", width=4)
    member = _member([d], accessors=True)
    with pytest.raises(DirectiveError) as ei:
        DirectiveResolver().resolve_member("T", member)
    assert ei.value.code == E_ACCESSOR_CONFLICT


# -- codec -------------------------------------------------------------------


def _layout(scheme, offset=0, width=8, value_range=(0.0, 1.0)):
    return PackingLayout(
        field_name="packed",
        field_type="uint",
        scheme=scheme,
        bit_offset=offset,
        bit_width=width,
        value_range=value_range,
    )


def test_packed_uint_quantizes_half():
    layout = _layout(PackingScheme.PACKED_UINT, offset=4, width=8)
    stored = encode_value(layout, 0.5)
    assert stored == 127 << 4
    assert decode_value(layout, stored) == pytest.approx(0.498, abs=1e-3)


@pytest.mark.parametrize("width", [1, 4, 8, 16])
@pytest.mark.parametrize("value_range", [(0.0, 1.0), (-1.0, 1.0), (2.0, 10.0)])
def test_round_trip_error_bound(width, value_range):
    layout = _layout(
        PackingScheme.PACKED_FLOAT, offset=3, width=width, value_range=value_range
    )
    lo, hi = value_range
    step = (hi - lo) / ((1 << width) - 1)
    for i in range(11):
        v = lo + (hi - lo) * i / 10
        decoded = decode_value(layout, encode_value(layout, v))
        assert abs(decoded - v) <= step + 1e-9


def test_encode_clamps_out_of_range():
    layout = _layout(PackingScheme.PACKED_FLOAT, width=4)
    assert encode_value(layout, 5.0) == 15
    assert encode_value(layout, -5.0) == 0


def test_insert_bits_keeps_neighbours():
    layout = _layout(PackingScheme.PACKED_UINT, offset=8, width=8)
    stored = 0xFF00FF
    updated = insert_bits(layout, stored, 0.0)
    assert updated == 0xFF00FF & ~(0xFF << 8)
    assert insert_bits(layout, updated, 1.0) == 0xFFFFFF


def test_init_bits_ors_into_storage():
    low = _layout(PackingScheme.PACKED_UINT, offset=0, width=4)
    high = _layout(PackingScheme.PACKED_UINT, offset=4, width=4)
    stored = init_bits(low, 0, 1.0)
    stored = init_bits(high, stored, 1.0)
    assert stored == 0xFF


def test_no_packing_passes_through():
    layout = _layout(PackingScheme.NO_PACKING, width=0)
    assert encode_value(layout, (1.0, 2.0)) == (1.0, 2.0)
    assert decode_value(layout, 7) == 7


def test_r11g11b10_layout():
    assert pack_r11g11b10f((0.0, 0.0, 0.0)) == 0
    bits = pack_r11g11b10f((1.0, 0.5, 0.25))
    r, g, b = unpack_r11g11b10f(bits)
    assert (r, g, b) == (1.0, 0.5, 0.25)
    # 1.0 as half is 0x3C00; the red channel keeps the top 11 bits.
    assert bits >> 21 == 0x3C00 >> 4


def test_r11g11b10_remaps_range():
    layout = _layout(PackingScheme.R11G11B10, width=32, value_range=(-1.0, 1.0))
    decoded = decode_value(layout, encode_value(layout, (1.0, 0.0, -1.0)))
    assert decoded == pytest.approx((1.0, 0.0, -1.0), abs=1e-2)


def test_unknown_scheme_cannot_be_encoded():
    layout = _layout(None)
    with pytest.raises(DirectiveError):
        encode_value(layout, 0.5)


def test_packed_uint_without_range_stores_plain_integers():
    d = PackingDirective(scheme="PackedUint", offset=4, width=4)
    layout = DirectiveResolver().resolve("T", _member([d]), d)
    assert not layout.normalized
    assert layout.value_type == "uint"
    stored = encode_value(layout, 9)
    assert stored == 9 << 4
    assert decode_value(layout, stored) == 9
    assert encode_value(layout, 0x1F) == 0xF << 4


def test_packed_uint_with_range_quantizes():
    d = PackingDirective(scheme="PackedUint", offset=4, width=8, range=[0.0, 1.0])
    layout = DirectiveResolver().resolve("T", _member([d]), d)
    assert layout.normalized
    assert layout.value_type == "float"
    assert encode_value(layout, 0.5) == 127 << 4
