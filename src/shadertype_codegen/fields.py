# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Field descriptors, register accumulators and accessors.

A :class:`FieldDescriptor` is the shader-side view of one record member. The
packer folds descriptors into :class:`PackedRegister` values; each register
then hands out one :class:`Accessor` per member describing where the member
lives inside the (possibly merged) register.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

SWIZZLE = "xyzw"
REGISTER_COMPONENTS = 4


class PrimitiveKind(Enum):
    FLOAT = "float"
    INT = "int"
    UINT = "uint"
    BOOL = "bool"
    HALF = "half"
    REAL = "real"
    STRUCT = "struct"

    @property
    def is_float(self) -> bool:
        return self in (PrimitiveKind.FLOAT, PrimitiveKind.HALF, PrimitiveKind.REAL)


def primitive_to_string(
    kind: PrimitiveKind, type_name: str, rows: int, cols: int
) -> str:
    """HLSL spelling of a primitive shape (``float``, ``half3``, ``float4x4``)."""
    if kind is PrimitiveKind.STRUCT:
        return type_name
    text = kind.value
    if rows > 1:
        text += str(rows)
        if cols > 1:
            text += "x" + str(cols)
    return text


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    kind: PrimitiveKind
    rows: int = 1
    cols: int = 1
    array_size: int = 0
    type_name: str = ""
    comment: str = ""
    preprocessor: str = ""
    # Storage read by name from packed getters and setters.
    bit_field: bool = False

    @property
    def element_count(self) -> int:
        return self.rows * self.cols * max(self.array_size, 1)

    @property
    def components(self) -> int:
        return self.rows * self.cols

    @property
    def shareable(self) -> bool:
        """Whether other fields may join the register holding this one."""
        return (
            not self.bit_field
            and self.array_size == 0
            and self.kind is not PrimitiveKind.STRUCT
        )

    @property
    def type_string(self) -> str:
        return primitive_to_string(self.kind, self.type_name, self.rows, self.cols)

    def decl_string(self) -> str:
        array_text = f"[{self.array_size}]" if self.array_size > 0 else ""
        return f"{self.type_string} {self.name}{array_text}"


@dataclass(frozen=True)
class Accessor:
    """Where one logical field lives inside its register."""

    field_name: str
    register: str
    swizzle_offset: int
    components: int
    array_size: int = 0
    packed: bool = False

    @property
    def swizzle(self) -> str:
        # A field owning its whole register is addressed without a swizzle.
        if not self.packed:
            return ""
        end = self.swizzle_offset + self.components
        return "." + SWIZZLE[self.swizzle_offset : end]

    def expression(self, source: str, index: str = "") -> str:
        array_access = f"[{index}]" if self.array_size > 0 and index else ""
        return f"{source}.{self.register}{array_access}{self.swizzle}"


@dataclass(frozen=True)
class PackedRegister:
    """One declared member of the generated record.

    An unmerged register wraps a single descriptor. Merged registers carry
    every member in declaration order together with the component offset at
    which each member starts.
    """

    name: str
    kind: PrimitiveKind
    rows: int
    cols: int = 1
    array_size: int = 0
    type_name: str = ""
    comment: str = ""
    preprocessor: str = ""
    members: Tuple[FieldDescriptor, ...] = field(default_factory=tuple)
    offsets: Tuple[int, ...] = field(default_factory=tuple)

    @classmethod
    def from_descriptor(cls, desc: FieldDescriptor) -> "PackedRegister":
        return cls(
            name=desc.name,
            kind=desc.kind,
            rows=desc.rows,
            cols=desc.cols,
            array_size=desc.array_size,
            type_name=desc.type_name,
            comment=desc.comment,
            preprocessor=desc.preprocessor,
            members=(desc,),
            offsets=(0,),
        )

    @property
    def element_count(self) -> int:
        return self.rows * self.cols * max(self.array_size, 1)

    @property
    def is_full(self) -> bool:
        return self.element_count % REGISTER_COMPONENTS == 0

    @property
    def merged(self) -> bool:
        return len(self.members) > 1

    @property
    def shareable(self) -> bool:
        return all(m.shareable for m in self.members)

    def as_descriptor(self) -> FieldDescriptor:
        return FieldDescriptor(
            name=self.name,
            kind=self.kind,
            rows=self.rows,
            cols=self.cols,
            array_size=self.array_size,
            type_name=self.type_name,
            comment=self.comment,
            preprocessor=self.preprocessor,
        )

    def accessors(self) -> Tuple[Accessor, ...]:
        return tuple(
            Accessor(
                field_name=member.name,
                register=self.name,
                swizzle_offset=offset,
                components=member.components,
                array_size=member.array_size,
                packed=self.merged,
            )
            for member, offset in zip(self.members, self.offsets)
        )


@dataclass(frozen=True)
class StaticConstant:
    name: str
    value: str

    def render(self) -> str:
        return f"#define {self.name} ({self.value})"


__all__ = [
    "PrimitiveKind",
    "primitive_to_string",
    "FieldDescriptor",
    "Accessor",
    "PackedRegister",
    "StaticConstant",
    "SWIZZLE",
    "REGISTER_COMPONENTS",
]
