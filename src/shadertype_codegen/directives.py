# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Explicit bit-packing directives.

A member carrying ``packing:`` entries is stored as raw bits and read back
through generated getters. :class:`DirectiveResolver` validates each entry
once per generation pass and produces an immutable :class:`PackingLayout`.

The ``encode_value`` / ``decode_value`` helpers mirror the arithmetic of the
generated HLSL so quantization can be checked on the host.
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple, Union

from .errors import (
    E_ACCESSOR_CONFLICT,
    E_BIT_RANGE,
    E_UNKNOWN_SCHEME,
    E_UNRECOGNIZED_TYPE,
    E_VALUE_RANGE,
    directive_error,
)
from .model import Member, PackingDirective

MAX_BITS = 32

# Declared member types that can be exposed unpacked, with their HLSL type.
NATIVE_TYPES: Dict[str, str] = {
    "uint": "uint",
    "float": "float",
    "Vector2": "float2",
    "Vector3": "float3",
    "Vector4": "float4",
    "Vector2Int": "int2",
    "float2": "float2",
    "float3": "float3",
    "float4": "float4",
    "int2": "int2",
}

BIT_BACKING_TYPES = ("uint",)


class PackingScheme(Enum):
    PACKED_FLOAT = "PackedFloat"
    PACKED_UINT = "PackedUint"
    R11G11B10 = "R11G11B10"
    NO_PACKING = "NoPacking"

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["PackingScheme"]:
        """Case-insensitive lookup that tolerates ``_`` and blanks."""
        if not text:
            return None
        key = text.replace("_", "").replace(" ", "").lower()
        for scheme in cls:
            if scheme.value.lower() == key:
                return scheme
        return None

    @property
    def is_bit_field(self) -> bool:
        return self in (PackingScheme.PACKED_FLOAT, PackingScheme.PACKED_UINT)


@dataclass(frozen=True)
class PackingLayout:
    field_name: str
    field_type: str
    scheme: Optional[PackingScheme]
    bit_offset: int = 0
    bit_width: int = MAX_BITS
    value_range: Tuple[float, float] = (0.0, 1.0)
    display_names: Tuple[str, ...] = ()
    is_direction: bool = False
    srgb: bool = False
    check_normalized: bool = False
    normalized: bool = True
    preprocessor: str = ""

    @property
    def mask(self) -> int:
        return (1 << self.bit_width) - 1

    @property
    def display_name(self) -> str:
        return self.display_names[0] if self.display_names else self.field_name

    @property
    def remapped(self) -> bool:
        return self.value_range != (0.0, 1.0)

    @property
    def native_type(self) -> Optional[str]:
        return NATIVE_TYPES.get(self.field_type)

    @property
    def value_type(self) -> Optional[str]:
        """HLSL type handed out by the getter and taken by the setter."""
        if self.scheme is PackingScheme.PACKED_FLOAT:
            return "float"
        if self.scheme is PackingScheme.PACKED_UINT:
            return "float" if self.normalized else "uint"
        if self.scheme is PackingScheme.R11G11B10:
            return "float3"
        if self.scheme is PackingScheme.NO_PACKING:
            return self.native_type
        return None


class DirectiveResolver:
    """Validates packing directives and caches the resulting layouts.

    One resolver belongs to one generation unit; it is not shared between
    threads.
    """

    def __init__(self) -> None:
        self._cache: Dict[Tuple[str, str, int], PackingLayout] = {}

    def __len__(self) -> int:
        return len(self._cache)

    def resolve(
        self,
        type_name: str,
        member: Member,
        directive: PackingDirective,
        index: Optional[int] = None,
    ) -> PackingLayout:
        if index is None:
            index = (
                member.packing.index(directive) if directive in member.packing else 0
            )
        key = (type_name, member.name, index)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        layout = self._build(type_name, member, directive)
        self._cache[key] = layout
        return layout

    def resolve_member(
        self, type_name: str, member: Member
    ) -> Tuple[PackingLayout, ...]:
        if member.packing and member.accessors:
            raise directive_error(
                E_ACCESSOR_CONFLICT,
                f"'{type_name}.{member.name}' carries packing directives and "
                "also requests ordinary accessors",
                {"type": type_name, "field": member.name},
            )
        return tuple(
            self.resolve(type_name, member, d, i)
            for i, d in enumerate(member.packing)
        )

    def _build(
        self, type_name: str, member: Member, directive: PackingDirective
    ) -> PackingLayout:
        ctx = {"type": type_name, "field": member.name}
        scheme = PackingScheme.parse(directive.scheme)
        if scheme is None:
            raise directive_error(
                E_UNKNOWN_SCHEME,
                f"unknown packing scheme '{directive.scheme}' on "
                f"'{type_name}.{member.name}'",
                {**ctx, "scheme": directive.scheme},
            )

        offset, width = 0, MAX_BITS
        if scheme.is_bit_field:
            offset = directive.offset
            width = directive.width if directive.width is not None else 0
            if not 1 <= width <= MAX_BITS:
                raise directive_error(
                    E_BIT_RANGE,
                    f"bit width {width} of '{type_name}.{member.name}' must be "
                    f"in 1..{MAX_BITS}",
                    {**ctx, "width": width},
                )
            if offset < 0 or offset + width > MAX_BITS:
                raise directive_error(
                    E_BIT_RANGE,
                    f"bits {offset}..{offset + width - 1} of "
                    f"'{type_name}.{member.name}' do not fit in {MAX_BITS} bits",
                    {**ctx, "offset": offset, "width": width},
                )
        if scheme is PackingScheme.NO_PACKING:
            width = 0
            if member.type not in NATIVE_TYPES:
                raise directive_error(
                    E_UNRECOGNIZED_TYPE,
                    f"'{member.type}' of '{type_name}.{member.name}' cannot be "
                    "exposed without packing",
                    {**ctx, "field_type": member.type},
                )
        elif member.type not in BIT_BACKING_TYPES:
            raise directive_error(
                E_UNRECOGNIZED_TYPE,
                f"{scheme.value} needs a uint backing field, "
                f"'{type_name}.{member.name}' is '{member.type}'",
                {**ctx, "field_type": member.type},
            )

        given = directive.range is not None
        rng = tuple(float(v) for v in directive.range) if given else (0.0, 1.0)
        if len(rng) != 2 or rng[0] == rng[1]:
            raise directive_error(
                E_VALUE_RANGE,
                f"value range {list(rng)} of "
                f"'{type_name}.{member.name}' must be [min, max] with max != min",
                {**ctx, "range": list(rng)},
            )

        names = tuple(n for n in directive.display_names if n) or (member.name,)
        return PackingLayout(
            field_name=member.name,
            field_type=member.type,
            scheme=scheme,
            bit_offset=offset,
            bit_width=width,
            value_range=(rng[0], rng[1]),
            display_names=names,
            is_direction=directive.is_direction,
            srgb=directive.srgb,
            check_normalized=directive.check_normalized,
            preprocessor=directive.preprocessor,
            # A PackedUint without a range carries a plain integer.
            normalized=given or scheme is not PackingScheme.PACKED_UINT,
        )


# ---------------------------------------------------------------------------
# Host-side codec
# ---------------------------------------------------------------------------

Value = Union[float, Sequence[float]]


def _normalize(layout: PackingLayout, value: float) -> float:
    lo, hi = layout.value_range
    return (value - lo) / (hi - lo)


def _denormalize(layout: PackingLayout, value: float) -> float:
    lo, hi = layout.value_range
    return value * (hi - lo) + lo


def _to_small_float(value: float, shift: int) -> int:
    # Unsigned small floats are the top bits of an IEEE half without sign.
    value = min(max(value, 0.0), 65504.0)
    (half,) = struct.unpack("<H", struct.pack("<e", value))
    return (half & 0x7FFF) >> shift


def _from_small_float(bits: int, shift: int) -> float:
    (value,) = struct.unpack("<e", struct.pack("<H", (bits << shift) & 0x7FFF))
    return float(value)


def pack_r11g11b10f(rgb: Sequence[float]) -> int:
    r, g, b = rgb
    return (
        (_to_small_float(r, 4) << 21)
        | (_to_small_float(g, 4) << 10)
        | _to_small_float(b, 5)
    )


def unpack_r11g11b10f(bits: int) -> Tuple[float, float, float]:
    return (
        _from_small_float((bits >> 21) & 0x7FF, 4),
        _from_small_float((bits >> 10) & 0x7FF, 4),
        _from_small_float(bits & 0x3FF, 5),
    )


def encode_value(layout: PackingLayout, value: Value):
    """Bits a setter stores for ``value`` (already shifted into place)."""
    scheme = layout.scheme
    if scheme is PackingScheme.R11G11B10:
        return pack_r11g11b10f([_normalize(layout, v) for v in value])
    if scheme is PackingScheme.NO_PACKING:
        return value
    if scheme is None or not scheme.is_bit_field:
        raise directive_error(
            E_UNKNOWN_SCHEME, f"cannot encode '{layout.field_name}' without a scheme"
        )
    if not layout.normalized:
        return (int(value) & layout.mask) << layout.bit_offset
    n = min(max(_normalize(layout, float(value)), 0.0), 1.0)
    quantized = int(math.floor(n * layout.mask))
    return quantized << layout.bit_offset


def decode_value(layout: PackingLayout, stored):
    """Value a getter returns for the raw register contents ``stored``."""
    scheme = layout.scheme
    if scheme is PackingScheme.R11G11B10:
        return tuple(_denormalize(layout, v) for v in unpack_r11g11b10f(stored))
    if scheme is PackingScheme.NO_PACKING:
        return stored
    if scheme is None or not scheme.is_bit_field:
        raise directive_error(
            E_UNKNOWN_SCHEME, f"cannot decode '{layout.field_name}' without a scheme"
        )
    quantized = (stored >> layout.bit_offset) & layout.mask
    if not layout.normalized:
        return quantized
    return _denormalize(layout, quantized / layout.mask)


def insert_bits(layout: PackingLayout, stored: int, value: Value) -> int:
    """Setter semantics: replace the field bits, keep everything else."""
    if layout.scheme is PackingScheme.R11G11B10:
        return encode_value(layout, value)
    keep = stored & ~(layout.mask << layout.bit_offset) & 0xFFFFFFFF
    return keep | encode_value(layout, value)


def init_bits(layout: PackingLayout, stored: int, value: Value) -> int:
    """Initializer semantics: OR into storage assumed to be zero."""
    if layout.scheme is PackingScheme.R11G11B10:
        return encode_value(layout, value)
    return stored | encode_value(layout, value)


__all__ = [
    "NATIVE_TYPES",
    "PackingScheme",
    "PackingLayout",
    "DirectiveResolver",
    "encode_value",
    "decode_value",
    "insert_bits",
    "init_bits",
    "pack_r11g11b10f",
    "unpack_r11g11b10f",
]
