# src/daylist/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_store import TaskStore
from .ports import Clock


@dataclass
class AppState:
    # Settings object (Settings or a SimpleNamespace in tests).
    settings: Any

    task_store: TaskStore
    clock: Clock

    # Serializes console commands against each other; storage handles cross-process writers.
    lock: threading.Lock = field(default_factory=threading.Lock)
