"""Progress tracking functionality for Transkit."""

from typing import Dict, Optional, Protocol

from rich.progress import Progress, ProgressColumn, Task, TaskID
from rich.text import Text

from transkit.core.errors import TranslatorError
from transkit.core.types import TranslationResult, WorkUnit
from transkit.utils.logging import get_logger

logger = get_logger(__name__)


class ProgressReporter(Protocol):
    """Receives per-unit progress events from the processor and scheduler."""

    def unit_status(self, unit: WorkUnit, status: str) -> None:
        ...

    def unit_progress(self, unit: WorkUnit, fraction: float) -> None:
        ...

    def unit_finished(self, unit: WorkUnit, result: TranslationResult) -> None:
        ...

    def unit_failed(self, unit: WorkUnit, error: TranslatorError) -> None:
        ...


class NullProgressReporter:
    """Reporter that ignores every event."""

    def unit_status(self, unit: WorkUnit, status: str) -> None:
        pass

    def unit_progress(self, unit: WorkUnit, fraction: float) -> None:
        pass

    def unit_finished(self, unit: WorkUnit, result: TranslationResult) -> None:
        pass

    def unit_failed(self, unit: WorkUnit, error: TranslatorError) -> None:
        pass


class CurrentCostColumn(ProgressColumn):
    """Displays accumulated estimated cost."""

    def render(self, task: Task) -> Text:
        """Render the current cost.

        Args:
            task: The progress task

        Returns:
            Rich Text object with formatted cost
        """
        cost = task.fields.get("total_cost", 0.0)
        if cost > 0:
            return Text(f"${cost:.6f}", style="yellow")
        else:
            return Text("", style="dim")


class StatusColumn(ProgressColumn):
    """Displays the current step of a unit."""

    def render(self, task: Task) -> Text:
        return Text(task.fields.get("status", ""), style="dim")


class RichProgressReporter:
    """Renders one bar per unit plus a total bar on a rich Progress."""

    def __init__(self, progress: Progress, total_units: int) -> None:
        """Initialize the reporter.

        Args:
            progress: Started rich progress display
            total_units: Number of units in the batch
        """
        self._progress = progress
        self._tasks: Dict[int, TaskID] = {}
        self._completed = 0
        self._total_cost = 0.0
        self._total_task: Optional[TaskID] = None
        if total_units > 1:
            self._total_task = progress.add_task(
                "Total", total=total_units, status="", total_cost=0.0
            )

    def _task_for(self, unit: WorkUnit) -> TaskID:
        if unit.index not in self._tasks:
            self._tasks[unit.index] = self._progress.add_task(
                unit.source_path.name, total=100, status="Waiting...", total_cost=0.0
            )
        return self._tasks[unit.index]

    def unit_status(self, unit: WorkUnit, status: str) -> None:
        self._progress.update(self._task_for(unit), status=status)

    def unit_progress(self, unit: WorkUnit, fraction: float) -> None:
        self._progress.update(self._task_for(unit), completed=round(fraction * 100))

    def unit_finished(self, unit: WorkUnit, result: TranslationResult) -> None:
        self._progress.update(
            self._task_for(unit),
            completed=100,
            status="Done",
            total_cost=result.token_usage.estimated_cost,
        )
        self._completed += 1
        self._total_cost += result.token_usage.estimated_cost
        self._update_total()

    def unit_failed(self, unit: WorkUnit, error: TranslatorError) -> None:
        self._progress.update(self._task_for(unit), completed=0, status=f"Failed: {error.message}")
        self._completed += 1
        self._update_total()

    def _update_total(self) -> None:
        if self._total_task is not None:
            self._progress.update(
                self._total_task, completed=self._completed, total_cost=self._total_cost
            )
