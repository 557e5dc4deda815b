# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

"""Output writing with access checks."""

from __future__ import annotations

import os
import stat
from pathlib import Path

from .errors import E_WRITE_ACCESS, WriteError


def _write_error(path: Path, reason: str) -> WriteError:
    return WriteError(
        code=E_WRITE_ACCESS,
        message=f"{path} {reason}. Skipping it.",
        context={"path": str(path)},
    )


def check_target_access(path: str | Path) -> None:
    """Raise :class:`WriteError` when an existing target must not be replaced."""
    p = Path(path)
    if not p.exists():
        return
    try:
        st = p.stat()
    except OSError as e:
        raise _write_error(p, f"is not accessible ({e.strerror})") from e
    if not st.st_mode & stat.S_IWUSR:
        raise _write_error(p, "is ReadOnly")
    if not os.access(p, os.W_OK):
        raise _write_error(p, "is not writable")


def atomic_write(path: str | Path, content: str) -> bool:
    """Replace ``path`` with ``content``; False when it was already up to date."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    if p.exists():
        old = p.read_text(encoding="utf-8")
        if old == content:
            return False
    tmp = p.with_name(p.name + ".tmp")
    try:
        with open(tmp, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.replace(tmp, p)
    except OSError:
        try:
            os.remove(tmp)
        except OSError:
            pass
        raise
    return True


__all__ = ["check_target_access", "atomic_write"]
