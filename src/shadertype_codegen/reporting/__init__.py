# ===-----------------------------------------------------------------------===#
# Distributed under the 3-Clause BSD License. See accompanying file LICENSE or
# copy at https://opensource.org/licenses/BSD-3-Clause.
# SPDX-License-Identifier: BSD-3-Clause
# ===-----------------------------------------------------------------------===#

from .base import (
    Reporter,
    TaskStatus,
    color_enabled,
    get_reporter,
    set_reporter,
    section,
    task,
)
from .base import (
    set_verbosity,
    get_verbosity,
)
from .plain import PlainReporter
from .silent import SilentReporter
from .rich_reporter import RichReporter

REPORTERS = {
    "plain": PlainReporter,
    "rich": RichReporter,
    "silent": SilentReporter,
}

__all__ = [
    "Reporter",
    "TaskStatus",
    "color_enabled",
    "get_reporter",
    "set_reporter",
    "section",
    "task",
    "set_verbosity",
    "get_verbosity",
    "PlainReporter",
    "SilentReporter",
    "RichReporter",
    "REPORTERS",
]
