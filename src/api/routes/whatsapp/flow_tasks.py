"""Tasks de encaminhamento disparadas pelo endpoint de Flow.

A resposta ao Flow sai antes do encaminhamento terminar; o shutdown
aguarda as tasks pendentes.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Coroutine

logger = logging.getLogger(__name__)

_active_tasks: set[asyncio.Task[Any]] = set()


def schedule_forward_task(coroutine: Coroutine[Any, Any, Any]) -> int:
    """Agenda o encaminhamento sem bloquear a resposta.

    Returns:
        Quantidade de tasks ativas após o agendamento.
    """
    task = asyncio.create_task(coroutine)
    _active_tasks.add(task)
    task.add_done_callback(_on_forward_task_done)
    logger.info(
        "flow_forward_scheduled",
        extra={"component": "flow_endpoint", "active_tasks": len(_active_tasks)},
    )
    return len(_active_tasks)


def _on_forward_task_done(task: asyncio.Task[Any]) -> None:
    _active_tasks.discard(task)
    with contextlib.suppress(asyncio.CancelledError):
        exc = task.exception()
        if exc is not None:
            logger.error(
                "flow_forward_task_failed",
                extra={"component": "flow_endpoint", "error_type": type(exc).__name__},
            )


def pending_forward_tasks() -> int:
    return len(_active_tasks)


async def drain_forward_tasks(timeout_seconds: float = 15.0) -> None:
    """Aguarda encaminhamentos pendentes; cancela o que passar do timeout."""
    if not _active_tasks:
        return

    pending_now = list(_active_tasks)
    logger.info(
        "flow_forward_shutdown_wait",
        extra={"pending_tasks": len(pending_now), "timeout_seconds": timeout_seconds},
    )
    _, pending = await asyncio.wait(pending_now, timeout=timeout_seconds)
    if not pending:
        return

    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
    logger.warning(
        "flow_forward_shutdown_cancelled",
        extra={"cancelled_tasks": len(pending)},
    )
