from typing import Iterable, Optional

from .logger import get_logger
from .models import Task

logger = get_logger("catalog")

SUBSTITUTION_THRESHOLD = 3
COOLDOWN_CYCLES = 2

DEFAULT_TASKS: tuple[Task, ...] = (
    Task(id="water-500", title="Drink 500 ml water", category="hydration",
         impact_weight=4, effort_min=5, micro_alt="water-250"),
    Task(id="water-250", title="Drink 250 ml water", category="hydration",
         impact_weight=3, effort_min=3),
    Task(id="steps-1k", title="Walk 1,000 steps", category="movement",
         impact_weight=4, effort_min=10, micro_alt="steps-300"),
    Task(id="steps-300", title="Walk 300 steps (indoors ok)", category="movement",
         impact_weight=3, effort_min=5),
    Task(id="screen-break-10", title="Take a 10-min screen break", category="screen",
         impact_weight=4, effort_min=10),
    Task(id="sleep-winddown-15", title="15-min wind-down routine", category="sleep",
         impact_weight=5, effort_min=15, time_gate="evening"),
    Task(id="mood-check-quick", title="Quick mood check-in", category="mood",
         impact_weight=2, effort_min=3),
)

# Efecto sobre las métricas al completar (screen/sleep/mood no tocan nada)
COMPLETION_EFFECTS: dict[str, tuple[str, float]] = {
    "water-500": ("water_ml", 500),
    "water-250": ("water_ml", 250),
    "steps-1k": ("steps", 1000),
    "steps-300": ("steps", 300),
}


class TaskCatalog:
    def __init__(self, tasks: Iterable[Task] = DEFAULT_TASKS):
        # Copias propias: el estado de ejecución no se comparte entre catálogos
        self._tasks = [t.model_copy() for t in tasks]
        self._by_id = {t.id: t for t in self._tasks}
        self._parent_of = {t.micro_alt: t.id for t in self._tasks if t.micro_alt}
        self.cycle = 0
        self._validate()

    def _validate(self) -> None:
        if len(self._by_id) != len(self._tasks):
            raise ValueError("Duplicate task ids in catalog")
        for task in self._tasks:
            if not task.micro_alt:
                continue
            alt = self._by_id.get(task.micro_alt)
            if alt is None:
                raise ValueError(f"{task.id}: unknown micro_alt {task.micro_alt!r}")
            if alt.micro_alt:
                raise ValueError(f"{alt.id}: a micro alternative cannot have its own micro_alt")

    def all(self) -> list[Task]:
        return list(self._tasks)

    def get(self, task_id: str) -> Optional[Task]:
        return self._by_id.get(task_id)

    def parent_of(self, task_id: str) -> Optional[Task]:
        parent_id = self._parent_of.get(task_id)
        return self._by_id[parent_id] if parent_id else None

    def is_substituted(self, task: Task) -> bool:
        return bool(task.micro_alt) and task.ignores >= SUBSTITUTION_THRESHOLD

    def in_cooldown(self, task: Task) -> bool:
        if task.ignores >= SUBSTITUTION_THRESHOLD or task.cooldown_until is None:
            return False
        return self.cycle <= task.cooldown_until

    def advance_cycle(self) -> int:
        self.cycle += 1
        return self.cycle

    def mark_completed(self, task_id: str) -> Optional[Task]:
        task = self.get(task_id)
        if task is None:
            logger.warning("Complete requested for unknown task %s", task_id)
            return None
        if task.completed_today:
            logger.info("Task %s already completed today", task_id)
            return None
        task.completed_today = True
        return task

    def dismiss(self, task_id: str) -> bool:
        task = self.get(task_id)
        if task is None:
            logger.warning("Dismiss requested for unknown task %s", task_id)
            return False
        task.ignores += 1
        if task.ignores >= SUBSTITUTION_THRESHOLD:
            # Umbral alcanzado: la sustituye su micro alternativa, sin cool-down
            task.cooldown_until = None
        else:
            task.cooldown_until = self.cycle + COOLDOWN_CYCLES
        return True

    def set_ignores(self, task_id: str, ignores: int) -> bool:
        task = self.get(task_id)
        if task is None:
            return False
        task.ignores = ignores
        return True

    def reset(self) -> None:
        for task in self._tasks:
            task.ignores = 0
            task.completed_today = False
            task.cooldown_until = None
        self.cycle = 0
