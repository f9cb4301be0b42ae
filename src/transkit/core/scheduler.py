"""Priority scheduling of work units under a concurrency bound."""

import asyncio
import bisect
import itertools
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from transkit.core.errors import TranslatorError, classify_error
from transkit.core.types import TranslationResult, WorkUnit
from transkit.utils.logging import get_logger, unit_context

logger = get_logger(__name__)


def unit_priority(unit: WorkUnit) -> int:
    """Priority of a unit: the negated size in bytes, so smaller files go first."""
    return -unit.size


@dataclass(frozen=True)
class UnitFailure:
    """A unit that failed for good."""

    unit: WorkUnit
    error: TranslatorError
    attempts: int


@dataclass(frozen=True)
class UnitOutcome:
    """Final state of a unit, delivered once through its completion future."""

    unit: WorkUnit
    result: Optional[TranslationResult] = None
    failure: Optional[UnitFailure] = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None


@dataclass
class QueueEntry:
    """A queued unit with its priority and completion channel."""

    priority: int
    sequence: int
    unit: WorkUnit
    future: asyncio.Future
    admissions: int = 0

    @property
    def sort_key(self) -> tuple[int, int]:
        return (-self.priority, self.sequence)


class TaskQueue:
    """Pending entries kept sorted by descending priority.

    Entries of equal priority keep insertion order, and a re-inserted entry
    goes behind the entries already waiting at its priority.
    """

    def __init__(self) -> None:
        self._entries: List[QueueEntry] = []
        self._sequence = itertools.count()

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def next_sequence(self) -> int:
        return next(self._sequence)

    def push(self, entry: QueueEntry) -> None:
        bisect.insort(self._entries, entry, key=lambda e: e.sort_key)

    def requeue(self, entry: QueueEntry) -> None:
        entry.sequence = self.next_sequence()
        self.push(entry)

    def pop(self) -> QueueEntry:
        return self._entries.pop(0)

    def snapshot(self) -> List[WorkUnit]:
        """Units in the order they would be admitted."""
        return [entry.unit for entry in self._entries]


@dataclass
class BatchRun:
    """Results of one scheduler run."""

    results: List[TranslationResult] = field(default_factory=list)
    failures: List[UnitFailure] = field(default_factory=list)
    outcomes: List[UnitOutcome] = field(default_factory=list)


class Scheduler:
    """Runs work units concurrently in priority order."""

    def __init__(
        self,
        process: Callable[[WorkUnit], Awaitable[TranslationResult]],
        concurrency: int,
        max_requeues: int = 1,
        on_admit: Optional[Callable[[WorkUnit], None]] = None,
        on_complete: Optional[Callable[[WorkUnit, TranslationResult], None]] = None,
        on_failure: Optional[Callable[[UnitFailure], None]] = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            process: Coroutine function translating one unit
            concurrency: Maximum number of units running at once
            max_requeues: How often a unit that failed with a retryable error
                is put back into the queue. Each admission runs ``process``
                again, with its own retries.
            on_admit: Called when a unit starts running
            on_complete: Called with each unit and its successful result
            on_failure: Called with each unit that failed for good
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.process = process
        self.concurrency = concurrency
        self.max_requeues = max_requeues
        self.on_admit = on_admit
        self.on_complete = on_complete
        self.on_failure = on_failure
        self._logger = logger

    async def _run_entry(self, entry: QueueEntry) -> TranslationResult:
        with unit_context(str(entry.unit.source_path), entry.admissions):
            return await self.process(entry.unit)

    async def run_batch(self, units: Iterable[WorkUnit]) -> BatchRun:
        """Translate all units.

        Args:
            units: Units in enumeration order

        Returns:
            Successful results in completion order, permanent failures, and
            each unit's outcome in enumeration order
        """
        loop = asyncio.get_running_loop()
        queue = TaskQueue()
        entries: List[QueueEntry] = []
        for unit in units:
            entry = QueueEntry(
                priority=unit_priority(unit),
                sequence=queue.next_sequence(),
                unit=unit,
                future=loop.create_future(),
            )
            entries.append(entry)
            queue.push(entry)

        self._logger.debug(
            "Admission order",
            files=[unit.source_path.name for unit in queue.snapshot()],
        )

        run = BatchRun()
        running: Dict[asyncio.Task, QueueEntry] = {}

        try:
            while queue or running:
                while queue and len(running) < self.concurrency:
                    entry = queue.pop()
                    entry.admissions += 1
                    task = asyncio.create_task(self._run_entry(entry))
                    running[task] = entry
                    if self.on_admit:
                        self.on_admit(entry.unit)

                done, _ = await asyncio.wait(set(running), return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    entry = running.pop(task)
                    self._settle(entry, task, queue, run)
        finally:
            # Leaving early (a hook raised or the caller cancelled) stops the rest
            for task in running:
                task.cancel()
            await asyncio.gather(*running, return_exceptions=True)

        run.outcomes = [entry.future.result() for entry in entries]
        return run

    def _settle(self, entry: QueueEntry, task: asyncio.Task, queue: TaskQueue, run: BatchRun) -> None:
        exception = task.exception()

        if exception is None:
            result = task.result()
            run.results.append(result)
            entry.future.set_result(UnitOutcome(unit=entry.unit, result=result))
            if self.on_complete:
                self.on_complete(entry.unit, result)
            return

        error = classify_error(exception)
        if error.retryable and entry.admissions <= self.max_requeues:
            self._logger.warning(
                f"Re-queueing {entry.unit.source_path.name}: {error.message}",
                suggestion=error.suggestion,
                admissions=entry.admissions,
            )
            queue.requeue(entry)
            return

        failure = UnitFailure(unit=entry.unit, error=error, attempts=entry.admissions)
        run.failures.append(failure)
        entry.future.set_result(UnitOutcome(unit=entry.unit, failure=failure))
        self._logger.error(
            f"Translation failed: {entry.unit.source_path}",
            error=error.message,
            suggestion=error.suggestion,
        )
        if self.on_failure:
            self.on_failure(failure)
