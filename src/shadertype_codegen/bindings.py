# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Global shader bindings, multi-compile keywords and compute kernels."""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Collection, Dict

from .errors import (
    E_ARRAY_SIZE,
    E_INNER_TYPE,
    E_UNRECOGNIZED_TYPE,
    directive_error,
)
from .model import Binding, Kernel, Keyword
from .naming import resolve_target_name

_PLAIN_TYPES: Dict[str, str] = {
    "int": "int",
    "uint": "uint",
    "bool": "int",
    "Vector3Int": "uint3",
    "Vector2Int": "uint2",
}

# Types whose HLSL spelling switches to half precision on request.
_FLOAT_TYPES: Dict[str, str] = {
    "float": "float",
    "float[]": "float",
    "Vector2": "float2",
    "Vector3": "float3",
    "Vector4": "float4",
    "Vector4[]": "float4",
    "Matrix4x4": "float4x4",
    "Matrix4x4[]": "float4x4",
}

_BUFFER_TYPES = ("ComputeBuffer", "GraphicsBuffer")
_TEXTURE_TYPES = ("Texture", "Texture2D", "Texture3D", "RenderTexture")
_GENERIC_BUFFER = re.compile(r"^(RW)?StructuredBuffer<\s*([\w\[\]]+)\s*>$")


def _error(code: str, binding: Binding, message: str):
    return directive_error(
        code,
        f"failed to generate binding '{binding.name}': {message}",
        {"binding": binding.name, "binding_type": binding.type},
    )


def hlsl_type(
    type_name: str, binding: Binding, generated: Collection[str] = ()
) -> str:
    """HLSL spelling of ``type_name`` as declared by ``binding``."""
    if binding.hlsl_type:
        return binding.hlsl_type
    if type_name in _PLAIN_TYPES:
        return _PLAIN_TYPES[type_name]
    if type_name in _FLOAT_TYPES:
        text = _FLOAT_TYPES[type_name]
        return "half" + text[len("float") :] if binding.half else text
    if type_name in _TEXTURE_TYPES:
        if not binding.inner_type:
            return "Texture2D<float4>"
        text = "RW" if binding.is_uav else ""
        text += f"Texture{binding.tex_dimension}D"
        if binding.is_tex_array:
            text += "Array"
        return f"{text}<{hlsl_type(binding.inner_type, binding, generated)}>"
    if type_name in _BUFFER_TYPES:
        if not binding.inner_type:
            raise _error(
                E_INNER_TYPE, binding, f"buffer inner type not specified for {type_name}"
            )
        inner = hlsl_type(binding.inner_type, binding, generated)
        prefix = "RW" if binding.is_uav else ""
        return f"{prefix}StructuredBuffer<{inner}>"
    m = _GENERIC_BUFFER.match(type_name)
    if m:
        inner = hlsl_type(m.group(2), binding, generated)
        if m.group(1) and (binding.is_uav or not binding.add_rw):
            return f"RWStructuredBuffer<{inner}>"
        return f"StructuredBuffer<{inner}>"
    if type_name in generated:
        return type_name
    raise _error(
        E_UNRECOGNIZED_TYPE, binding, f"unrecognized data type '{type_name}'"
    )


def _postfix(binding: Binding) -> str:
    if not binding.type.endswith("[]"):
        return ""
    if binding.array_size == 0:
        raise _error(
            E_ARRAY_SIZE, binding, f"array size not specified for {binding.type}"
        )
    return f"[{binding.array_size}]"


def _declaration(binding: Binding, name: str, generated: Collection[str]) -> str:
    text = "globallycoherent " if binding.globally_coherent and binding.is_uav else ""
    return f"{text}{hlsl_type(binding.type, binding, generated)} {name}{_postfix(binding)};\n"


def emit_binding(binding: Binding, generated: Collection[str] = ()) -> str:
    name = resolve_target_name(binding.name, binding.target)
    text = _declaration(binding, name, generated)
    if binding.add_rw:
        text += _declaration(replace(binding, is_uav=True), name + "RW", generated)
    return text


def emit_keyword(keyword: Keyword) -> str:
    mode = "multi_compile_local" if keyword.local else "multi_compile"
    if keyword.values:
        names = " ".join(
            resolve_target_name(v.name, v.target) for v in keyword.values
        )
        return f"#pragma {mode} {names}\n"
    return f"#pragma {mode} __ {resolve_target_name(keyword.name, keyword.target)}\n"


def emit_kernel(kernel: Kernel) -> str:
    return f"#pragma kernel {resolve_target_name(kernel.name, kernel.target)}\n"


__all__ = ["hlsl_type", "emit_binding", "emit_keyword", "emit_kernel"]
