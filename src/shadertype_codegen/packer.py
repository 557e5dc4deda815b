# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Merge adjacent field descriptors into 4-component registers.

Aggressive packing walks the declared fields in order and folds each one
into the current register while it still has room. Declaration order is never
changed; when a field cannot join the register in progress the whole pass
fails with a :class:`~shadertype_codegen.errors.PackingError` suggesting a
reordering. Nested structs, arrays and the storage of bit-packed fields are
never merged: they close the register in progress and keep one of their own.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from functools import reduce
from typing import Iterable, Optional, Tuple

from .errors import (
    E_MATRIX_MERGE,
    E_REGISTER_OVERFLOW,
    E_TYPE_MISMATCH,
    packing_error,
)
from .fields import REGISTER_COMPONENTS, FieldDescriptor, PackedRegister


class PackState(Enum):
    ACCUMULATING = "accumulating"
    FULL = "full"


@dataclass(frozen=True)
class _Fold:
    emitted: Tuple[PackedRegister, ...] = ()
    current: Optional[PackedRegister] = None

    @property
    def state(self) -> PackState:
        if self.current is not None and self.current.is_full:
            return PackState.FULL
        return PackState.ACCUMULATING

    def finish(self) -> Tuple[PackedRegister, ...]:
        if self.current is None:
            return self.emitted
        return self.emitted + (self.current,)


def _check_compatible(register: PackedRegister, desc: FieldDescriptor) -> None:
    ctx = {"register": register.name, "field": desc.name}
    held = register.as_descriptor().decl_string()
    incoming = desc.decl_string()
    if desc.kind is not register.kind or desc.type_name != register.type_name:
        raise packing_error(
            E_TYPE_MISMATCH,
            f"can't merge '{held}' and '{incoming}' into the same register "
            "because they have incompatible types.  Consider reordering the "
            "fields so that adjacent fields have the same primitive type.",
            ctx,
        )
    if desc.cols > 1 or register.cols > 1:
        raise packing_error(
            E_MATRIX_MERGE,
            f"merging matrix types not yet supported ('{held}' and "
            f"'{incoming}').  Consider reordering the fields to place "
            "matrix-typed variables on four-component vector boundaries.",
            ctx,
        )


def merge(register: PackedRegister, desc: FieldDescriptor) -> PackedRegister:
    """Append ``desc`` to a register that is not full yet."""
    _check_compatible(register, desc)
    if desc.rows + register.rows > REGISTER_COMPONENTS:
        held = register.as_descriptor().decl_string()
        incoming = desc.decl_string()
        raise packing_error(
            E_REGISTER_OVERFLOW,
            f"can't merge '{held}' and '{incoming}' because then {desc.name} "
            "would cross register boundary.  Consider reordering the fields "
            "so that none of them cross four-component vector boundaries "
            "when packed.",
            {"register": register.name, "field": desc.name},
        )
    return replace(
        register,
        name=register.name + "_" + desc.name,
        rows=register.rows + desc.rows,
        members=register.members + (desc,),
        offsets=register.offsets + (register.element_count,),
    )


def _step(fold: _Fold, desc: FieldDescriptor) -> _Fold:
    if fold.current is None:
        return _Fold(fold.emitted, PackedRegister.from_descriptor(desc))
    if fold.state is PackState.FULL:
        return _Fold(fold.emitted + (fold.current,), PackedRegister.from_descriptor(desc))
    if not (fold.current.shareable and desc.shareable):
        # Structs, arrays and bit-field storage keep a register of their own.
        _check_compatible(fold.current, desc)
        return _Fold(fold.emitted + (fold.current,), PackedRegister.from_descriptor(desc))
    return _Fold(fold.emitted, merge(fold.current, desc))


def pack_fields(
    descriptors: Iterable[FieldDescriptor], aggressive: bool
) -> Tuple[PackedRegister, ...]:
    """Lay out ``descriptors`` as registers.

    Without aggressive packing every descriptor keeps a register of its own.
    """
    if not aggressive:
        return tuple(PackedRegister.from_descriptor(d) for d in descriptors)
    return reduce(_step, descriptors, _Fold()).finish()


__all__ = ["PackState", "merge", "pack_fields"]
