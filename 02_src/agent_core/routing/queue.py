"""Priority queue in front of the MessageRouter."""

import asyncio
import itertools
from dataclasses import dataclass, field

from ..logging_config import get_logger
from ..models import AgentContext, Message, Result
from .router import IMessageRouter

logger = get_logger(__name__)


@dataclass(order=True)
class _QueuedMessage:
    rank: int
    seq: int
    message: Message = field(compare=False)
    context: AgentContext | None = field(compare=False)
    future: asyncio.Future = field(compare=False)


class RoutingQueue:
    """Routes submitted messages in priority order (urgent first, FIFO within a level).

    With several workers, priority only decides which message starts next;
    a lower-priority message may still finish first. ``strict_priority``
    runs a single worker so messages are routed one at a time in order.
    """

    def __init__(
        self,
        router: IMessageRouter,
        workers: int = 4,
        strict_priority: bool = False,
    ):
        self._router = router
        self._workers = 1 if strict_priority else max(1, workers)
        self._queue: asyncio.PriorityQueue[_QueuedMessage] = asyncio.PriorityQueue()
        self._seq = itertools.count()
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        """Spawn worker tasks."""
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._worker(i), name=f"routing-worker-{i}")
            for i in range(self._workers)
        ]
        logger.info("RoutingQueue started with %s workers", self._workers)

    async def stop(self) -> None:
        """Cancel workers and fail anything still queued."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        while not self._queue.empty():
            item = self._queue.get_nowait()
            if not item.future.done():
                item.future.cancel()
            self._queue.task_done()

    def enqueue(
        self, message: Message, context: AgentContext | None = None
    ) -> asyncio.Future:
        """Queue a message; the returned future resolves to its results."""
        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait(
            _QueuedMessage(
                rank=message.metadata.priority.rank,
                seq=next(self._seq),
                message=message,
                context=context,
                future=future,
            )
        )
        return future

    async def submit(
        self, message: Message, context: AgentContext | None = None
    ) -> list[Result]:
        """Queue a message and wait for its results."""
        if not self._tasks:
            raise RuntimeError("RoutingQueue not started")
        return await self.enqueue(message, context)

    async def join(self) -> None:
        """Wait until every queued message has been routed."""
        await self._queue.join()

    async def _worker(self, index: int) -> None:
        while True:
            item = await self._queue.get()
            try:
                if item.future.cancelled():
                    continue
                results = await self._router.route(item.message, item.context)
                if not item.future.done():
                    item.future.set_result(results)
            except asyncio.CancelledError:
                if not item.future.done():
                    item.future.cancel()
                raise
            except Exception as e:
                # Routing errors (unknown target, duplicate id) go to the submitter
                logger.warning("Worker %s could not route %s: %s", index, item.message.id, e)
                if not item.future.done():
                    item.future.set_exception(e)
            finally:
                self._queue.task_done()
