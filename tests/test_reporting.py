# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

import io

from rich.console import Console

from shadertype_codegen.logging import configure_logging, get_logger, step
from shadertype_codegen.reporting import (
    PlainReporter,
    RichReporter,
    color_enabled,
    set_reporter,
    set_verbosity,
    task,
)


def test_plain_reporter_task_summary():
    buf = io.StringIO()
    set_reporter(PlainReporter(stream=buf))
    with task("units", "Generating", total=2) as stats:
        stats.update(types=3, written=2)
    out = buf.getvalue()
    assert "✔ Generating 0/2" in out
    assert "[types=3 written=2]" in out


def test_task_with_errors_is_marked_failed():
    buf = io.StringIO()
    set_reporter(PlainReporter(stream=buf))
    with task("units", "Generating", total=1) as stats:
        stats.update(errors=1)
    assert "✖ Generating" in buf.getvalue()


def test_logging_routes_into_reporter():
    buf = io.StringIO()
    rep = PlainReporter(stream=buf, use_color=False)
    set_reporter(rep)
    set_verbosity(0)
    configure_logging(0)
    log = get_logger("test")
    log.info("hello")
    log.debug("hidden")
    log.error("broken", extra={"fields": {"code": "E_X"}})
    step("next")
    out = buf.getvalue()
    assert "INFO: hello\n" in out
    assert "hidden" not in out
    assert "ERROR: E_X: broken\n" in out
    assert "INFO:   -> next\n" in out
    assert rep.error_count == 1


def test_color_enabled_respects_no_color(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")
    assert not color_enabled(io.StringIO())
    assert color_enabled(io.StringIO(), use_color=True)
    monkeypatch.delenv("NO_COLOR")
    assert not color_enabled(io.StringIO())


def test_rich_reporter_prints_messages():
    buf = io.StringIO()
    rep = RichReporter(Console(file=buf, force_terminal=False, no_color=True, width=120))
    set_reporter(rep)
    with task("units", "Generating shaders", total=1) as stats:
        rep.advance("units", current_item="Points.cs")
        stats.update(written=1)
    rep.error("bad [thing]", code="E_X")
    rep.flush()
    out = buf.getvalue()
    assert "Generating shaders 1/1" in out
    assert "ERROR: E_X: bad [thing]" in out
    assert rep.error_count == 1
