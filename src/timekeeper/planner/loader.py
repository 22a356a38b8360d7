"""Read planner templates from YAML files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from .models import Planner

logger = logging.getLogger(__name__)

PLANNER_SUFFIXES = (".yaml", ".yml")


def _planner_files(directory: Path) -> list[Path]:
    return sorted(
        path for path in directory.iterdir() if path.is_file() and path.suffix in PLANNER_SUFFIXES
    )


def _read_planner(path: Path) -> Planner | None:
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"{path}: not valid YAML ({exc})") from exc
    if document is None:
        return None
    if not isinstance(document, dict):
        raise ConfigurationError(f"{path}: expected a mapping, got {type(document).__name__}")
    try:
        return Planner.model_validate(document)
    except ValidationError as exc:
        problems = ", ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ConfigurationError(f"{path}: {problems}") from exc


def load_planners(search_paths: Iterable[Path]) -> dict[str, Planner]:
    """Map planner id to planner across ``search_paths``.

    A directory later in ``search_paths`` overrides an earlier one for the same
    id. Two files in one directory declaring the same id are an error, as is
    any file that fails to parse; every problem is reported together.
    """

    planners: dict[str, Planner] = {}
    problems: list[str] = []

    for directory in (Path(path) for path in search_paths):
        if not directory.is_dir():
            logger.debug("planner path skipped", extra={"path": str(directory)})
            continue
        seen: dict[str, Path] = {}
        for path in _planner_files(directory):
            try:
                planner = _read_planner(path)
            except ConfigurationError as exc:
                problems.append(str(exc))
                continue
            if planner is None:
                continue
            if planner.id in seen:
                problems.append(f"planner '{planner.id}' is defined in both {seen[planner.id]} and {path}")
                continue
            seen[planner.id] = path
            if planner.id in planners:
                logger.debug("planner overridden", extra={"planner_id": planner.id, "path": str(path)})
            planners[planner.id] = planner

    if problems:
        raise ConfigurationError("Invalid planner files: " + "; ".join(problems))
    return planners


def load_planner(search_paths: Iterable[Path], planner_id: str) -> Planner:
    paths = list(search_paths)
    planners = load_planners(paths)
    if planner_id not in planners:
        searched = ", ".join(str(path) for path in paths) or "(no paths)"
        raise ConfigurationError(f"Planner '{planner_id}' not found in {searched}")
    return planners[planner_id]


__all__ = ["PLANNER_SUFFIXES", "load_planner", "load_planners"]
