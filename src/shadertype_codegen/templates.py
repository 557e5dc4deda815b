# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""String templates used by the shader type code generator."""

HEADER = """//
// This file was automatically generated. Please don't edit by hand. Execute [ {command} ] instead
// Source: {src}
// Source-Version: {src_ver}
// Tool: ShaderTypeCodeGen {tool_ver}
//
"""

TEMPLATE_HLSL = (
    HEADER
    + """
#ifndef {guard}
#define {guard}
{body}
{bindings}
#endif
{custom_include}"""
)

TEMPLATE_PRAGMAS = (
    HEADER
    + """
#ifndef {guard}
#define {guard}

{pragmas}
#endif
{custom_include}"""
)

CUSTOM_INCLUDE = '#include "{name}"\n'
