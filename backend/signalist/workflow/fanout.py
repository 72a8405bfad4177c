"""Fan-out / fan-in across subscribers.

``run_stage`` runs one durable, isolated step per item with bounded
concurrency and returns ``(item, outcome)`` pairs in input order, whatever
order the steps finish in. A run-level deadline cancels unfinished items,
which come back as ``Failure`` with a "cancelled" reason; steps that already
completed keep their recorded results.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence, TypeVar

import logfire

from .outcome import Failure, Outcome, cancelled_outcome, identify_item, isolate
from .steps import StepExecutor

logger = logging.getLogger(__name__)

InT = TypeVar("InT")
OutT = TypeVar("OutT")


async def run_stage(
    items: Sequence[InT],
    per_item: Callable[[InT], Awaitable[OutT]],
    stage_namer: Callable[[InT], str],
    executor: StepExecutor,
    stage: str,
    concurrency: int = 5,
    deadline: float | None = None,
    result_type: Any = None,
    identify: Callable[[Any], str] = identify_item,
) -> list[tuple[InT, Outcome[OutT]]]:
    """Drive ``per_item`` over ``items`` and fan the outcomes back in.

    Args:
        items: Stage input, one entry per subscriber
        per_item: Work for one item; exceptions become ``Failure`` outcomes
        stage_namer: Durable step name per item, unique within the run
        executor: Step executor of the current run
        stage: Stage label for logs and error records
        concurrency: Maximum items in flight at once
        deadline: Event-loop time (``loop.time()``) after which unfinished
            items are cancelled
        result_type: Step value type, forwarded to the executor

    Returns:
        One ``(item, outcome)`` pair per input item, in input order
    """
    if not items:
        return []

    loop = asyncio.get_running_loop()
    semaphore = asyncio.Semaphore(concurrency)

    async def _durable(item: InT) -> OutT:
        return await executor.run(
            stage_namer(item),
            lambda: per_item(item),
            result_type=result_type,
        )

    async def _one(item: InT) -> Outcome[OutT]:
        async with semaphore:
            return await isolate(item, _durable, stage, identify)

    with logfire.span("stage {stage}", stage=stage, items=len(items)):
        tasks = [asyncio.create_task(_one(item)) for item in items]
        timeout = None if deadline is None else max(0.0, deadline - loop.time())

        try:
            _, pending = await asyncio.wait(tasks, timeout=timeout)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        if pending:
            logger.warning(
                f"Stage '{stage}' hit the run deadline with {len(pending)} "
                f"of {len(items)} items unfinished; cancelling"
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        results: list[tuple[InT, Outcome[OutT]]] = []
        for item, task in zip(items, tasks):
            if task.cancelled():
                results.append((item, cancelled_outcome(item, stage)))
            else:
                results.append((item, task.result()))

        failed = sum(1 for _, outcome in results if isinstance(outcome, Failure))
        logger.info(
            f"Stage '{stage}' complete: {len(results) - failed} succeeded, {failed} failed"
        )

    return results
