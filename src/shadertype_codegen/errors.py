# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Error definitions for ShaderTypeCodeGen."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

# Extraction
E_UNSUPPORTED_TYPE = "E_UNSUPPORTED_TYPE"
E_MIXED_KINDS = "E_MIXED_KINDS"
E_TOO_MANY_SUBFIELDS = "E_TOO_MANY_SUBFIELDS"
E_NON_PRIMITIVE_SUBFIELD = "E_NON_PRIMITIVE_SUBFIELD"
E_INVALID_ARRAY = "E_INVALID_ARRAY"
# Packing
E_TYPE_MISMATCH = "E_TYPE_MISMATCH"
E_MATRIX_MERGE = "E_MATRIX_MERGE"
E_REGISTER_OVERFLOW = "E_REGISTER_OVERFLOW"
# Directives / declarations
E_ARRAY_SIZE = "E_ARRAY_SIZE"
E_INNER_TYPE = "E_INNER_TYPE"
E_UNKNOWN_SCHEME = "E_UNKNOWN_SCHEME"
E_UNRECOGNIZED_TYPE = "E_UNRECOGNIZED_TYPE"
E_BIT_RANGE = "E_BIT_RANGE"
E_VALUE_RANGE = "E_VALUE_RANGE"
E_ACCESSOR_CONFLICT = "E_ACCESSOR_CONFLICT"
# Document / output
E_SPEC_INVALID = "E_SPEC_INVALID"
E_DUP_TYPE_NAME = "E_DUP_TYPE_NAME"
E_WRITE_ACCESS = "E_WRITE_ACCESS"


@dataclass
class CodegenError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class ExtractionError(CodegenError):
    pass


class PackingError(CodegenError):
    pass


class DirectiveError(CodegenError):
    pass


class SpecError(CodegenError):
    pass


class WriteError(CodegenError):
    pass


def extraction_error(
    code: str, message: str, context: Optional[Dict[str, Any]] = None
) -> ExtractionError:
    return ExtractionError(code=code, message=message, context=context)


def packing_error(
    code: str, message: str, context: Optional[Dict[str, Any]] = None
) -> PackingError:
    return PackingError(code=code, message=message, context=context)


def directive_error(
    code: str, message: str, context: Optional[Dict[str, Any]] = None
) -> DirectiveError:
    return DirectiveError(code=code, message=message, context=context)


def spec_error(
    code: str, message: str, context: Optional[Dict[str, Any]] = None
) -> SpecError:
    return SpecError(code=code, message=message, context=context)


__all__ = [
    "CodegenError",
    "ExtractionError",
    "PackingError",
    "DirectiveError",
    "SpecError",
    "WriteError",
    "extraction_error",
    "packing_error",
    "directive_error",
    "spec_error",
    "E_UNSUPPORTED_TYPE",
    "E_MIXED_KINDS",
    "E_TOO_MANY_SUBFIELDS",
    "E_NON_PRIMITIVE_SUBFIELD",
    "E_INVALID_ARRAY",
    "E_TYPE_MISMATCH",
    "E_MATRIX_MERGE",
    "E_REGISTER_OVERFLOW",
    "E_ARRAY_SIZE",
    "E_INNER_TYPE",
    "E_UNKNOWN_SCHEME",
    "E_UNRECOGNIZED_TYPE",
    "E_BIT_RANGE",
    "E_VALUE_RANGE",
    "E_ACCESSOR_CONFLICT",
    "E_SPEC_INVALID",
    "E_DUP_TYPE_NAME",
    "E_WRITE_ACCESS",
]
