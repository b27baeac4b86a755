"""Contrato común para fuentes de lecturas guardadas en disco."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from vitals_tool.model import Reading


@dataclass(frozen=True)
class SourcePaths:
    """Folder scanned by a reading source."""

    root: Path


class DataSource(ABC):
    """Source of readings stored as files under ``paths.root``."""

    def __init__(self, paths: SourcePaths) -> None:
        self._paths = paths

    def validate(self) -> None:
        """Raise FileNotFoundError if the source folder does not exist."""
        if not self._paths.root.exists():
            raise FileNotFoundError(str(self._paths.root))

    def newest_file(self, pattern: str) -> Path:
        """Most recently modified file in the root matching ``pattern``."""
        files = sorted(
            self._paths.root.glob(pattern),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        if not files:
            raise FileNotFoundError(f"No {pattern} in {self._paths.root}")
        return files[0]

    @abstractmethod
    def load_readings(self, path: Path) -> list[Reading]:
        """Readings stored in ``path``, oldest first."""
