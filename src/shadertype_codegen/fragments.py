# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Typed output fragments and their deterministic ordering."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List


class FragmentKind(Enum):
    DEFINES = "defines"
    DECLARATION = "declaration"
    ACCESSORS = "accessors"
    SETTERS = "setters"
    INITIALIZERS = "initializers"
    DEBUG = "debug"
    PACKED_INCLUDE = "packed_include"
    PACKED_GETTERS = "packed_getters"
    PACKED_SETTERS = "packed_setters"
    PACKED_INITIALIZERS = "packed_initializers"
    PACKED_DEBUG = "packed_debug"
    BINDING = "binding"
    PRAGMA = "pragma"


# Sections of a generated file. Kinds sharing a section are grouped per
# owning type, in kind order.
_SECTION = {
    FragmentKind.DEFINES: 0,
    FragmentKind.DECLARATION: 1,
    FragmentKind.ACCESSORS: 2,
    FragmentKind.SETTERS: 2,
    FragmentKind.INITIALIZERS: 2,
    FragmentKind.DEBUG: 3,
    FragmentKind.PACKED_INCLUDE: 4,
    FragmentKind.PACKED_GETTERS: 4,
    FragmentKind.PACKED_SETTERS: 4,
    FragmentKind.PACKED_INITIALIZERS: 4,
    FragmentKind.PACKED_DEBUG: 4,
    FragmentKind.BINDING: 5,
    FragmentKind.PRAGMA: 6,
}
_KIND_ORDER = {kind: i for i, kind in enumerate(FragmentKind)}


@dataclass(frozen=True)
class Fragment:
    kind: FragmentKind
    text: str
    # Position of the owning type (or binding) within its output target.
    owner: int = 0

    @property
    def sort_key(self):
        return (_SECTION[self.kind], self.owner, _KIND_ORDER[self.kind])


def order_fragments(fragments: Iterable[Fragment]) -> List[Fragment]:
    return sorted(fragments, key=lambda f: f.sort_key)


def render_fragments(fragments: Iterable[Fragment]) -> str:
    """Concatenate fragments in file order."""
    return "".join(f.text for f in order_fragments(fragments))


__all__ = ["FragmentKind", "Fragment", "order_fragments", "render_fragments"]
