# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Command-line entry point for ShaderTypeCodeGen.

Loads a YAML description of shader-visible types, bindings, keywords and
kernels and emits one HLSL include per source (plus an optional pragmas
include and JSON manifest). Typically invoked from the build.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from ._version import __version__
from .generator import generate, validate
from .logging import configure_logging
from .reporting import (
    REPORTERS,
    PlainReporter,
    RichReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return value


def _generate_cmd(args: argparse.Namespace) -> int:
    result = generate(
        args.input,
        args.out_dir,
        dry_run=args.dry_run,
        schema_path=args.schema,
        jobs=args.jobs,
        emit_json=args.emit_json,
        packing_include=args.packing_include,
    )
    return 0 if result.ok else 1


def _validate_cmd(args: argparse.Namespace) -> int:
    result = validate(args.input, schema_path=args.schema)
    return 0 if result.ok else 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="shadertype-codegen",
        description="Shader type HLSL include generator",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "silent"],
        default="plain",
        help="Select reporter backend: plain (default), rich, silent",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"ShaderTypeCodeGen {__version__}",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    g = sub.add_parser("generate", help="Generate HLSL includes from a type description")
    g.add_argument("input", type=Path, help="Path to the YAML type description")
    g.add_argument(
        "--out-dir",
        dest="out_dir",
        type=Path,
        help="Output root (defaults to the input file's directory)",
    )
    g.add_argument(
        "--dry-run",
        action="store_true",
        help="Process everything and list planned outputs without writing",
    )
    g.add_argument(
        "--schema",
        help="Optional path to ShaderTypes.schema.json to use for validation",
    )
    g.add_argument(
        "--jobs",
        "-j",
        type=_positive_int,
        help="Number of sources generated in parallel (default: CPU count)",
    )
    g.add_argument(
        "--emit-json",
        dest="emit_json",
        action="store_true",
        help="Also write <source>.fields.json describing the generated layouts",
    )
    g.add_argument(
        "--packing-include",
        dest="packing_include",
        help="Override the include path of the packing helper library",
    )
    g.set_defaults(func=_generate_cmd)

    v = sub.add_parser("validate", help="Validate a type description without writing")
    v.add_argument("input", type=Path)
    v.add_argument("--schema", help="Optional schema path")
    v.set_defaults(func=_validate_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    reporter_cls = REPORTERS[args.reporter]
    if reporter_cls is RichReporter and not sys.stderr.isatty():
        reporter_cls = PlainReporter
    set_reporter(reporter_cls())
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    code = args.func(args)
    get_reporter().flush()
    return code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
