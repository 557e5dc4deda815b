# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Identifier transforms shared by the emitters.

Conventions followed by the generated HLSL:

- instance members may carry an ``m_`` marker, constants ``k_`` or ``s_``;
  both are dropped before a name is used;
- constant names get an ``_`` before every lower-to-upper case transition
  and are fully upper-cased (``maxLightCount`` -> ``MAX_LIGHT_COUNT``);
- an explicit target name always wins over anything derived.
"""

from __future__ import annotations

import re
from typing import Optional

_CASE_TRANSITION = re.compile(r"(?<=[a-z])(?=[A-Z])")

INSTANCE_PREFIX = "m_"
CONSTANT_PREFIXES = ("k_", "s_")


def insert_underscore(name: str) -> str:
    return _CASE_TRANSITION.sub("_", name)


def strip_instance_prefix(name: str) -> str:
    if name.startswith(INSTANCE_PREFIX):
        return name[len(INSTANCE_PREFIX) :]
    return name


def strip_constant_prefix(name: str) -> str:
    for prefix in CONSTANT_PREFIXES:
        if name.startswith(prefix):
            return name[len(prefix) :]
    return name


def resolve_target_name(name: str, target: Optional[str] = None) -> str:
    """Name used on the shader side for a binding, keyword or kernel."""
    if target:
        return target
    return strip_instance_prefix(name)


def static_constant_name(name: str) -> str:
    return strip_constant_prefix(insert_underscore(name)).upper()


def enum_constant_name(type_name: str, member: str) -> str:
    return (type_name + "_" + insert_underscore(member)).upper()


def class_name(full_name: str) -> str:
    """Last component of a dotted type name; nested ``A+B`` becomes ``A_B``."""
    return full_name.rsplit(".", 1)[-1].replace("+", "_")


def debug_define_name(full_name: str, display_name: str) -> str:
    name = insert_underscore(display_name.replace(" ", "_"))
    return ("DEBUGVIEW_" + class_name(full_name) + "_" + name).upper()


def function_suffix(name: str) -> str:
    """``color`` -> ``Color`` for Get/Set/Init function names."""
    if not name:
        return name
    return name[0].upper() + name[1:]


def include_guard(file_name: str) -> str:
    guard = file_name.replace(".", "_").upper()
    if not guard[:1].isalpha():
        guard = "_" + guard
    return guard


__all__ = [
    "insert_underscore",
    "strip_instance_prefix",
    "strip_constant_prefix",
    "resolve_target_name",
    "static_constant_name",
    "enum_constant_name",
    "class_name",
    "debug_define_name",
    "function_suffix",
    "include_guard",
]
