# backend/marketplace/tasks/enqueue.py
"""
Centralized task enqueue helper.

Always use enqueue_task() instead of task.delay() so request context and
default options are applied consistently.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from celery import current_app

logger = logging.getLogger(__name__)


def enqueue_task(
    task_name: str,
    args: Optional[Tuple[Any, ...]] = None,
    kwargs: Optional[Dict[str, Any]] = None,
    **options: Any,
) -> Any:
    """
    Enqueue a registered Celery task by name.

    Args:
        task_name: Fully qualified task name
        args: Positional arguments for the task
        kwargs: Keyword arguments for the task
        **options: Additional apply_async options (countdown, eta, queue...)

    Returns:
        AsyncResult from Celery
    """
    headers = options.pop("headers", None) or {}
    task = current_app.tasks[task_name]
    logger.debug(f"Enqueueing {task_name}")
    return task.apply_async(args=args or (), kwargs=kwargs or {}, headers=headers, **options)
