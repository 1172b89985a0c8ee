"""Contextual skill statistics and their JSON persistence."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from mc_autonomy.models import SkillRecord


def skill_file_path(skills_dir: str | Path, username: str) -> Path:
    return Path(skills_dir) / f"{username}_skills.json"


def _counter(entry: dict, field: str, key: str) -> int:
    value = entry.get(field, 0)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Counter {field!r} for {key!r} must be an integer, got {value!r}")
    return value


def load_skill_file(path: str | Path) -> dict[str, SkillRecord]:
    """Parse a persisted skill file. Raises ``ValueError`` on malformed content."""
    with Path(path).open("r", encoding="utf-8") as handle:
        payload = json.load(handle)

    if not isinstance(payload, dict):
        raise ValueError("Skill file must contain a JSON object")

    skills: dict[str, SkillRecord] = {}
    for key, entry in payload.items():
        if not isinstance(entry, dict):
            raise ValueError(f"Malformed skill entry for {key!r}")
        attempts = _counter(entry, "attempts", key)
        successes = _counter(entry, "successes", key)
        if attempts < 0 or successes < 0 or successes > attempts:
            raise ValueError(f"Inconsistent counters for {key!r}")
        skills[str(key)] = SkillRecord(attempts=attempts, successes=successes)
    return skills


class SkillStore:
    """Attempt/success counters keyed by context, persisted per agent identity."""

    def __init__(
        self,
        username: str,
        skills_dir: str | Path = ".",
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._path = skill_file_path(skills_dir, username)
        self._skills: dict[str, SkillRecord] = {}
        self._logger = logger or logging.getLogger("mc_autonomy.learning")

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        return len(self._skills)

    def get(self, key: str) -> SkillRecord | None:
        return self._skills.get(key)

    def record(self, key: str, success: bool) -> SkillRecord:
        skill = self._skills.setdefault(key, SkillRecord())
        skill.attempts += 1
        if success:
            skill.successes += 1
        return skill

    def snapshot(self) -> dict[str, dict[str, int]]:
        return {
            key: {"attempts": skill.attempts, "successes": skill.successes}
            for key, skill in self._skills.items()
        }

    def save(self, snapshot: dict[str, dict[str, int]] | None = None) -> None:
        """Write the full map, or a previously taken ``snapshot`` of it.

        The file is replaced atomically; a crash mid-write leaves at worst a stray temp file.
        """
        data = self.snapshot() if snapshot is None else snapshot
        payload = json.dumps(data, indent=2)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        self._logger.info("skills_saved", extra={"path": str(self._path), "skill_count": len(data)})

    def load(self) -> int:
        """Restore skills from disk. Missing or corrupt files start fresh."""
        try:
            self._skills = load_skill_file(self._path)
        except FileNotFoundError:
            self._skills = {}
            self._logger.info("skills_fresh_start", extra={"path": str(self._path)})
        except (OSError, TypeError, ValueError) as exc:
            self._skills = {}
            self._logger.warning(
                "skills_fresh_start",
                extra={"path": str(self._path), "error": f"{type(exc).__name__}: {exc}"},
            )
        else:
            self._logger.info("skills_loaded", extra={"skill_count": len(self._skills)})
        return len(self._skills)
