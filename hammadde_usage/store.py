"""
store.py — analysis projects persisted as one JSON document each

A project bundles the three processed datasets (recipe, supply, sales) and
four step-completion flags. Files live under the configured store directory
as analysisProject_<id>.json. Reconciliation results are never written; they
are recomputed from the stored entries.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from hammadde_usage.models import RecipeEntry, SalesEntry, SupplyEntry

logger = logging.getLogger(__name__)

FILE_PREFIX = "analysisProject_"
STEP_COUNT = 4
DATASET_STEPS = {"recipe": 0, "supply": 1, "sales": 2}
_ENTRY_TYPES = {"recipe": RecipeEntry, "supply": SupplyEntry, "sales": SalesEntry}


class ProjectNotFoundError(KeyError):
    pass


def default_project_name(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"Analiz {now.strftime('%d.%m.%Y %H:%M')}"


@dataclass(frozen=True)
class AnalysisProject:
    id: str
    name: str
    created_at: str
    recipe_entries: tuple[RecipeEntry, ...] = ()
    supply_entries: tuple[SupplyEntry, ...] = ()
    sales_entries: tuple[SalesEntry, ...] = ()
    completed_steps: tuple[bool, ...] = field(default=(False,) * STEP_COUNT)

    def entries(self, kind: str) -> tuple:
        if kind not in DATASET_STEPS:
            raise ValueError(f"Unknown dataset: {kind}")
        return getattr(self, f"{kind}_entries")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at,
            "recipe_entries": [item.to_dict() for item in self.recipe_entries],
            "supply_entries": [item.to_dict() for item in self.supply_entries],
            "sales_entries": [item.to_dict() for item in self.sales_entries],
            "completed_steps": list(self.completed_steps),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "AnalysisProject":
        for key in ("id", "name", "created_at"):
            if not isinstance(payload.get(key), str):
                raise ValueError(f"Project field '{key}' is missing or not a string")
        steps = payload.get("completed_steps", [False] * STEP_COUNT)
        if not isinstance(steps, list) or len(steps) != STEP_COUNT:
            raise ValueError("Project field 'completed_steps' must be a list of four flags")
        return cls(
            id=payload["id"],
            name=payload["name"],
            created_at=payload["created_at"],
            recipe_entries=tuple(RecipeEntry.from_dict(item) for item in payload.get("recipe_entries", [])),
            supply_entries=tuple(SupplyEntry.from_dict(item) for item in payload.get("supply_entries", [])),
            sales_entries=tuple(SalesEntry.from_dict(item) for item in payload.get("sales_entries", [])),
            completed_steps=tuple(bool(flag) for flag in steps),
        )


class ProjectStore:
    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, project_id: str) -> Path:
        return self.root / f"{FILE_PREFIX}{project_id}.json"

    def _write(self, project: AnalysisProject) -> AnalysisProject:
        self.root.mkdir(parents=True, exist_ok=True)
        self.path_for(project.id).write_text(
            json.dumps(project.to_dict(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        return project

    def create(self, name: str | None = None) -> AnalysisProject:
        now = datetime.now(timezone.utc)
        project = AnalysisProject(
            id=str(uuid.uuid4()),
            name=name or default_project_name(now.astimezone()),
            created_at=now.isoformat(),
        )
        logger.info("Created project %s (%s)", project.id, project.name)
        return self._write(project)

    def list(self) -> list[AnalysisProject]:
        """All readable projects, newest first. Unreadable files are skipped."""
        if not self.root.exists():
            return []
        projects = []
        for path in sorted(self.root.glob(f"{FILE_PREFIX}*.json")):
            try:
                projects.append(AnalysisProject.from_dict(json.loads(path.read_text(encoding="utf-8"))))
            except (OSError, ValueError, TypeError, AttributeError) as exc:
                logger.warning("Skipping invalid project file %s: %s", path.name, exc)
        projects.sort(key=lambda item: item.created_at, reverse=True)
        return projects

    def get(self, project_id: str) -> AnalysisProject:
        path = self.path_for(project_id)
        if not path.exists():
            raise ProjectNotFoundError(project_id)
        return AnalysisProject.from_dict(json.loads(path.read_text(encoding="utf-8")))

    def update_dataset(self, project_id: str, kind: str, entries: Sequence) -> AnalysisProject:
        if kind not in DATASET_STEPS:
            raise ValueError(f"Unknown dataset: {kind}")
        expected = _ENTRY_TYPES[kind]
        if any(not isinstance(item, expected) for item in entries):
            raise TypeError(f"{kind} entries must be {expected.__name__} instances")

        project = self.get(project_id)
        steps = list(project.completed_steps)
        steps[DATASET_STEPS[kind]] = len(entries) > 0
        updated = replace(project, completed_steps=tuple(steps), **{f"{kind}_entries": tuple(entries)})
        logger.info("Stored %d %s entries in project %s", len(entries), kind, project_id)
        return self._write(updated)

    def update_step(self, project_id: str, index: int, value: bool) -> AnalysisProject:
        project = self.get(project_id)
        if not 0 <= index < STEP_COUNT:
            logger.debug("Ignoring out-of-range step index %s", index)
            return project
        steps = list(project.completed_steps)
        steps[index] = bool(value)
        return self._write(replace(project, completed_steps=tuple(steps)))

    def delete(self, project_id: str) -> None:
        path = self.path_for(project_id)
        if not path.exists():
            raise ProjectNotFoundError(project_id)
        path.unlink()
        logger.info("Deleted project %s", project_id)
