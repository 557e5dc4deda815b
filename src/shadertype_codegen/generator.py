# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Generator orchestration: load YAML, normalize, validate, render, write.

Each source in the document is one generation unit owning its output
targets. Units share no mutable state and run on a thread pool; within a
unit every type goes through extraction, packing, directive resolution and
emission in declaration order. An error aborts only the type (or binding)
that raised it.
"""

from __future__ import annotations

import json
import os
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from . import schema as schema_mod
from ._version import __version__ as TOOL_VERSION
from .bindings import emit_binding, emit_kernel, emit_keyword
from .directives import DirectiveResolver, PackingLayout
from .emitter import TypeEmitter, field_accessors
from .errors import (
    E_SPEC_INVALID,
    E_WRITE_ACCESS,
    CodegenError,
    WriteError,
    spec_error,
)
from .extractor import FieldExtractor, TypeFields, TypeRegistry
from .fields import PackedRegister
from .fragments import Fragment, FragmentKind, render_fragments
from .logging import get_logger
from .model import Defaults, Model, Source, TypeDef, build_model
from .naming import include_guard
from .packer import pack_fields
from .reporting import get_reporter, section, task
from .templates import CUSTOM_INCLUDE, TEMPLATE_HLSL, TEMPLATE_PRAGMAS
from .writer import atomic_write, check_target_access

log = get_logger("generator")

_SEMVER = re.compile(r"^\d+\.\d+\.\d+$")


@dataclass
class Settings:
    """Effective configuration of one run (CLI over document over defaults)."""

    out_dir: Path
    source_label: str
    source_version: str = ""
    packing_include: str = ""
    param_defines_start: int = 1
    generator_command: str = ""
    emit_json: bool = False

    @classmethod
    def resolve(
        cls,
        defaults: Defaults,
        out_dir: Path,
        source_label: str,
        source_version: str = "",
        packing_include: Optional[str] = None,
        emit_json: bool = False,
    ) -> "Settings":
        return cls(
            out_dir=out_dir,
            source_label=source_label,
            source_version=source_version,
            packing_include=packing_include or defaults.packing_include,
            param_defines_start=defaults.param_defines_start,
            generator_command=defaults.generator_command,
            emit_json=emit_json,
        )


@dataclass
class TypeResult:
    type_def: TypeDef
    fields: Optional[TypeFields] = None
    registers: Tuple[PackedRegister, ...] = ()
    layouts: Tuple[PackingLayout, ...] = ()
    fragments: List[Fragment] = field(default_factory=list)
    errors: List[CodegenError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def describe(self) -> Dict[str, Any]:
        """Names/kinds contract of the generated record."""
        td = self.type_def
        out: Dict[str, Any] = {
            "name": td.name,
            "full_name": td.full_name,
            "kind": td.kind,
            "packing_rules": td.packing_rules,
            "fields": [],
            "packed": [],
            "debug": [],
        }
        for desc, acc in field_accessors(self.registers):
            out["fields"].append(
                {
                    "name": desc.name,
                    "kind": desc.kind.value,
                    "type": desc.type_string,
                    "rows": desc.rows,
                    "cols": desc.cols,
                    "array_size": desc.array_size,
                    "register": acc.register,
                    "swizzle_offset": acc.swizzle_offset,
                    "packed": acc.packed,
                }
            )
        for layout in self.layouts:
            out["packed"].append(
                {
                    "field": layout.field_name,
                    "display_names": list(layout.display_names),
                    "scheme": layout.scheme.value if layout.scheme else None,
                    "offset": layout.bit_offset,
                    "width": layout.bit_width,
                    "range": list(layout.value_range),
                }
            )
        if self.fields is not None:
            for f in self.fields.debug_fields:
                out["debug"].append(
                    {"define": f.define_name, "id": f.param_id, "field": f.field_name}
                )
            if td.is_enum:
                out["values"] = dict(self.fields.statics)
        return out


@dataclass
class UnitResult:
    source: Source
    target: Path
    pragmas_target: Path
    manifest_target: Path
    types: List[TypeResult] = field(default_factory=list)
    errors: List[CodegenError] = field(default_factory=list)
    outputs: Dict[Path, str] = field(default_factory=dict)
    written: List[Path] = field(default_factory=list)
    unchanged: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)

    @property
    def all_errors(self) -> List[CodegenError]:
        return [e for t in self.types for e in t.errors] + self.errors


@dataclass
class GenerationResult:
    units: List[UnitResult] = field(default_factory=list)
    errors: List[CodegenError] = field(default_factory=list)

    @property
    def all_errors(self) -> List[CodegenError]:
        return self.errors + [e for u in self.units for e in u.all_errors]

    @property
    def ok(self) -> bool:
        return not self.all_errors

    @property
    def written(self) -> List[Path]:
        return [p for u in self.units for p in u.written]


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_document(input_path: str | Path, schema_path: str | None = None) -> Model:
    """Read, normalize, validate and model the input document."""
    path = Path(input_path)
    log.debug("Loading input YAML: %s", path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            doc = yaml.safe_load(f)
    except OSError as e:
        raise spec_error(E_SPEC_INVALID, f"cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise spec_error(E_SPEC_INVALID, f"{path} is not valid YAML: {e}") from e
    if not isinstance(doc, dict):
        raise spec_error(E_SPEC_INVALID, f"{path} does not contain a mapping")

    resolved = schema_mod.find_schema(schema_path, str(path))
    if resolved is None:
        log.info("Schema: not found (skipping)")
    else:
        log.debug("Schema: %s", resolved)
    schema_mod.normalize_doc(doc)
    schema_mod.validate_against_schema(doc, resolved)

    meta = doc.get("meta") or {}
    version = meta.get("version")
    if not isinstance(version, str) or not _SEMVER.match(version):
        raise spec_error(
            E_SPEC_INVALID,
            "meta.version must be a semantic version string 'major.minor.patch'",
        )
    return build_model(doc)


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------


def build_type_unit(
    type_def: TypeDef,
    registry: TypeRegistry,
    resolver: DirectiveResolver,
    settings: Settings,
    owner: int = 0,
    render: bool = True,
) -> TypeResult:
    """Extract, pack, resolve and (optionally) emit one type."""
    result = TypeResult(type_def=type_def)
    fields = FieldExtractor(type_def, registry, settings.param_defines_start).extract()
    result.fields = fields
    if fields.errors:
        result.errors.extend(fields.errors)
        return result
    try:
        result.registers = pack_fields(fields.descriptors, type_def.aggressive)
        result.layouts = tuple(
            layout
            for member in fields.packed_members
            for layout in resolver.resolve_member(type_def.name, member)
        )
    except CodegenError as e:
        result.errors.append(e)
        return result
    if not render:
        return result

    emitter = TypeEmitter(
        fields, result.registers, result.layouts, settings.packing_include
    )
    result.fragments = emitter.fragments(owner)
    # Emission problems are reported but keep their marker in the output.
    result.errors.extend(emitter.errors)
    return result


def _custom_include(target: Path, source_path: str) -> str:
    # Hand-written companion: the source path with its extension replaced.
    custom = target.parent / f"{Path(source_path).stem}.custom.hlsl"
    if custom.exists():
        return CUSTOM_INCLUDE.format(name=custom.name)
    return ""


def _header_fields(settings: Settings) -> Dict[str, str]:
    return {
        "command": settings.generator_command,
        "src": settings.source_label,
        "src_ver": settings.source_version,
        "tool_ver": TOOL_VERSION,
    }


def build_unit(
    source: Source,
    registry: TypeRegistry,
    settings: Settings,
    render: bool = True,
) -> UnitResult:
    """Run every type of ``source`` and render its output files in memory."""
    stem = Path(source.path).name
    base = settings.out_dir / source.path
    unit = UnitResult(
        source=source,
        target=base.with_name(f"{stem}.hlsl"),
        pragmas_target=base.with_name(f"{stem}.pragmas.hlsl"),
        manifest_target=base.with_name(f"{stem}.fields.json"),
    )
    resolver = DirectiveResolver()

    fragments: List[Fragment] = []
    for owner, type_def in enumerate(source.types):
        res = build_type_unit(type_def, registry, resolver, settings, owner, render)
        unit.types.append(res)
        # An aborted type contributes no fragments.
        fragments.extend(res.fragments)

    generated = set(registry.generated)
    for owner, binding in enumerate(source.bindings):
        try:
            text = emit_binding(binding, generated)
        except CodegenError as e:
            unit.errors.append(e)
            continue
        fragments.append(Fragment(FragmentKind.BINDING, text, owner))

    pragmas: List[str] = []
    for keyword in source.keywords:
        pragmas.append(emit_keyword(keyword))
    for kernel in source.kernels:
        pragmas.append(emit_kernel(kernel))

    if not render:
        return unit

    header = _header_fields(settings)
    if source.types or source.bindings:
        body = render_fragments(
            f for f in fragments if f.kind is not FragmentKind.BINDING
        )
        bindings = render_fragments(
            f for f in fragments if f.kind is FragmentKind.BINDING
        )
        unit.outputs[unit.target] = TEMPLATE_HLSL.format(
            guard=include_guard(unit.target.name),
            body=body,
            bindings=bindings,
            custom_include=_custom_include(unit.target, source.path),
            **header,
        )
    if pragmas:
        unit.outputs[unit.pragmas_target] = TEMPLATE_PRAGMAS.format(
            guard=include_guard(unit.pragmas_target.name),
            pragmas="".join(pragmas),
            custom_include=_custom_include(unit.pragmas_target, source.path),
            **header,
        )
    if settings.emit_json and source.types:
        manifest = {
            "source": settings.source_label,
            "source_version": settings.source_version,
            "tool_version": TOOL_VERSION,
            "target": unit.target.name,
            "types": [t.describe() for t in unit.types if t.ok],
        }
        unit.outputs[unit.manifest_target] = json.dumps(manifest, indent=2) + "\n"
    return unit


def write_unit(unit: UnitResult) -> None:
    """Write the rendered outputs of ``unit``; inaccessible targets are skipped."""
    for path, content in unit.outputs.items():
        try:
            check_target_access(path)
            changed = atomic_write(path, content)
        except WriteError as e:
            unit.errors.append(e)
            unit.skipped.append(path)
            continue
        except OSError as e:
            unit.errors.append(
                WriteError(
                    code=E_WRITE_ACCESS,
                    message=f"failed to write {path}: {e}",
                    context={"path": str(path)},
                )
            )
            unit.skipped.append(path)
            continue
        (unit.written if changed else unit.unchanged).append(path)


def run_unit(
    source: Source,
    registry: TypeRegistry,
    settings: Settings,
    *,
    dry_run: bool = False,
) -> UnitResult:
    unit = build_unit(source, registry, settings)
    if not dry_run:
        write_unit(unit)
    return unit


def _report_unit(unit: UnitResult, base: Path) -> None:
    for err in unit.all_errors:
        log.error(
            "Error converting %s: %s",
            _short(unit.target, base),
            err.message,
            extra={"fields": {"code": err.code}},
        )
    for path in unit.written:
        log.debug("wrote %s", _short(path, base))
    for path in unit.unchanged:
        log.debug("up to date: %s", _short(path, base))


def _short(path: Path, base: Path) -> str:
    try:
        return os.path.relpath(path, base)
    except ValueError:
        return str(path)


def _run_units(
    model: Model,
    settings: Settings,
    jobs: Optional[int],
    dry_run: bool,
) -> List[UnitResult]:
    registry = TypeRegistry.from_model(model)
    sources = model.sources
    results: List[Optional[UnitResult]] = [None] * len(sources)
    rep = get_reporter()
    workers = max(1, jobs or os.cpu_count() or 1)
    with task("units", "Generating shader includes", total=len(sources)) as stats:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(
                    run_unit, source, registry, settings, dry_run=dry_run
                ): idx
                for idx, source in enumerate(sources)
            }
            for future in as_completed(futures):
                idx = futures[future]
                unit = future.result()
                results[idx] = unit
                rep.advance("units", current_item=sources[idx].path)
        units = [u for u in results if u is not None]
        stats.update(
            types=sum(len(u.types) for u in units),
            targets=sum(len(u.outputs) for u in units),
            written=sum(len(u.written) for u in units),
            unchanged=sum(len(u.unchanged) for u in units),
            skipped=sum(len(u.skipped) for u in units),
            errors=sum(len(u.all_errors) for u in units),
        )
    return units


def generate(
    input_path: str | Path,
    out_dir: str | Path | None = None,
    *,
    dry_run: bool = False,
    schema_path: str | None = None,
    jobs: Optional[int] = None,
    emit_json: bool = False,
    packing_include: Optional[str] = None,
) -> GenerationResult:
    """Generate every output target described by ``input_path``."""
    log.info("ShaderTypeCodeGen %s", TOOL_VERSION)
    result = GenerationResult()
    try:
        model = load_document(input_path, schema_path)
    except CodegenError as e:
        log.error("%s", e.message, extra={"fields": {"code": e.code}})
        result.errors.append(e)
        return result

    input_path = Path(input_path)
    root = Path(out_dir) if out_dir else input_path.parent
    settings = Settings.resolve(
        model.defaults,
        out_dir=root,
        source_label=input_path.name,
        source_version=model.meta.version or "",
        packing_include=packing_include,
        emit_json=emit_json,
    )
    log.debug("output root: %s", root)

    result.units = _run_units(model, settings, jobs, dry_run)
    for unit in result.units:
        _report_unit(unit, root)

    if dry_run:
        log.info("[DRY RUN] Planned outputs:")
        for unit in result.units:
            for path in unit.outputs:
                log.info("    %s", _short(path, root))
    elif result.written:
        log.info("Outputs updated")
    else:
        log.info("No changes (up to date)")
    return result


def validate(input_path: str | Path, schema_path: str | None = None) -> GenerationResult:
    """Run extraction, packing and directive resolution without rendering."""
    result = GenerationResult()
    try:
        model = load_document(input_path, schema_path)
    except CodegenError as e:
        log.error("%s", e.message, extra={"fields": {"code": e.code}})
        result.errors.append(e)
        return result

    settings = Settings.resolve(
        model.defaults, out_dir=Path(input_path).parent, source_label=str(input_path)
    )
    registry = TypeRegistry.from_model(model)
    with section(f"Validating {settings.source_label}"):
        for source in model.sources:
            unit = build_unit(source, registry, settings, render=False)
            result.units.append(unit)
            _report_unit(unit, settings.out_dir)
    if result.ok:
        types = sum(len(u.types) for u in result.units)
        log.info("Validation successful (%d types)", types)
    return result


__all__ = [
    "Settings",
    "TypeResult",
    "UnitResult",
    "GenerationResult",
    "load_document",
    "build_type_unit",
    "build_unit",
    "write_unit",
    "run_unit",
    "generate",
    "validate",
]
