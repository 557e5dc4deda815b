# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

from __future__ import annotations

import os
import time
from typing import Any, Dict

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from .base import Reporter, TaskRecord, TaskStatus, get_verbosity

_STATUS_ICON = {
    TaskStatus.SUCCESS: "✔",
    TaskStatus.FAILED: "✖",
    TaskStatus.SKIPPED: "→",
}


class RichReporter(Reporter):
    """Console reporter with a live progress bar per counted task."""

    supports_progress = True

    def __init__(self, console: Console | None = None):
        super().__init__()
        self.console = console or Console(
            stderr=True,
            highlight=False,
            soft_wrap=False,
            no_color=bool(os.environ.get("NO_COLOR")),
        )
        self.progress: Progress | None = None
        self._tasks: Dict[str, TaskRecord] = {}
        self._task_ids: Dict[str, Any] = {}

    def _ensure_progress(self) -> Progress:
        if self.progress is None:
            self.progress = Progress(
                SpinnerColumn(spinner_name="dots"),
                TextColumn("{task.fields[name]}", justify="left"),
                BarColumn(bar_width=None),
                TextColumn("{task.completed}/{task.total}"),
                TimeElapsedColumn(),
                console=self.console,
                expand=True,
            )
            self.progress.start()
        return self.progress

    # Tasks --------------------------------------------------------------------
    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        with self._lock:
            self._tasks[task_id] = TaskRecord(task_id, name, total, meta=meta)
            if total is None:
                # Uncounted tasks are shown as a header only.
                self.console.rule(escape(name))
                return
            progress = self._ensure_progress()
            self._task_ids[task_id] = progress.add_task("", total=total, name=name)

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        with self._lock:
            rec = self._tasks.get(task_id)
            if not rec:
                return
            rec.completed += step
            rec.meta.update(meta)
            rid = self._task_ids.get(task_id)
            if rid is not None and self.progress:
                self.progress.update(rid, completed=rec.completed)

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        with self._lock:
            rec = self._tasks.pop(task_id, None)
            if not rec:
                return
            rec.status = status
            rec.end_time = time.time()
            rec.meta.update(final_meta)
            rid = self._task_ids.pop(task_id, None)
            if rid is not None and self.progress:
                self.progress.update(rid, completed=rec.total)
            icon = _STATUS_ICON.get(status, "")
            total_part = (
                f" {rec.completed}/{rec.total}" if rec.total is not None else ""
            )
            self.console.print(
                f"{icon} {escape(rec.name)}{total_part} "
                f"({rec.duration():.2f}s){escape(rec.stats())}"
            )
            if not self._task_ids and self.progress:
                self.progress.stop()
                self.progress = None

    # Messaging / sections ------------------------------------------------------
    def status(self, message: str, **fields: Any) -> None:
        with self._lock:
            self.console.print(f"[green]INFO[/]: {escape(message)}")

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        with self._lock:
            self.console.print(f"[cyan]VERB{level}[/]: {escape(message)}")

    def error(self, message: str, **fields: Any) -> None:
        code = fields.get("code")
        text = f"{code}: {message}" if code else message
        with self._lock:
            self.error_count += 1
            self.console.print(f"[bold red]ERROR[/]: {escape(text)}")

    def warning(self, message: str, **fields: Any) -> None:
        with self._lock:
            self.console.print(f"[yellow]WARN[/]: {escape(message)}")

    def section(self, title: str) -> None:
        with self._lock:
            self.console.rule(escape(title))

    def flush(self) -> None:
        with self._lock:
            if self.progress:
                self.progress.stop()
                self.progress = None
