"""Named sync plans: which resources a run fetches, and in what order."""

from dataclasses import dataclass
from typing import Dict, Tuple

from ..core.resources import RESOURCES


@dataclass(frozen=True)
class SyncStep:
    resource: str
    # Optional steps are logged and skipped on failure instead of aborting the plan.
    optional: bool = False


@dataclass(frozen=True)
class SyncPlan:
    name: str
    description: str
    steps: Tuple[SyncStep, ...]

    @property
    def resources(self) -> Tuple[str, ...]:
        return tuple(step.resource for step in self.steps)


def _plan(name: str, description: str, *resources: str, optional: Tuple[str, ...] = ()) -> SyncPlan:
    for resource in resources:
        if resource not in RESOURCES:
            raise KeyError(f"Plan {name} references unknown resource {resource}")
    steps = tuple(SyncStep(resource, resource in optional) for resource in resources)
    return SyncPlan(name=name, description=description, steps=steps)


SYNC_PLANS: Dict[str, SyncPlan] = {
    plan.name: plan
    for plan in (
        _plan(
            "core",
            "Companies, projects, deals and time tracking",
            "companies",
            "projects",
            "deals",
            "time_entries",
            "time_entry_versions",
            optional=("time_entry_versions",),
        ),
        _plan("full", "Every catalogued resource in dependency order", *RESOURCES),
        _plan("custom-fields", "Custom fields and their options", "custom_fields", "custom_field_options"),
        _plan("services", "Service types and services", "service_types", "services"),
        _plan("task-lists", "Task lists, tasks and todos", "task_lists", "tasks", "todos"),
        _plan("time-entries", "Time entries and their versions", "time_entries", "time_entry_versions"),
        _plan("prs", "Payment reminder sequences and reminders", "payment_reminder_sequences", "payment_reminders"),
    )
}


def get_plan(name: str) -> SyncPlan:
    try:
        return SYNC_PLANS[name]
    except KeyError:
        raise KeyError(f"Unknown sync plan: {name}. Choose from {', '.join(SYNC_PLANS)}") from None
