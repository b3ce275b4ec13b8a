"""
app/services/task_executor.py

Executors for best-effort work scheduled after a request completes.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from fastapi import BackgroundTasks


class TaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class FastAPIBackgroundTaskExecutor:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._background_tasks.add_task(task, *args, **kwargs)


class InlineTaskExecutor:
    """Runs the task immediately in the caller's thread."""

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        task(*args, **kwargs)
