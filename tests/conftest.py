# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

import sys
import textwrap
from pathlib import Path

import pytest

SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from shadertype_codegen.reporting import SilentReporter, set_reporter  # noqa: E402


@pytest.fixture(autouse=True)
def silent_reporter():
    rep = SilentReporter()
    set_reporter(rep)
    return rep


@pytest.fixture
def write_doc(tmp_path):
    """Write a YAML document into ``tmp_path`` and return its path."""

    def _write(text: str, name: str = "types.yaml") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(text), encoding="utf-8")
        return path

    return _write
