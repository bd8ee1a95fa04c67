"""
Version log: append-only history of a project's diagram.

Each commit serializes the tree through the generator into an immutable
Version. Numbers start at 1 and increase by one per commit. Storage is the
caller's concern; this log only keeps the snapshots in memory.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional

from babeldiagram.diff import Change, diff
from babeldiagram.generator import generate
from babeldiagram.model import DiagramTree, Version
from babeldiagram.parser import parse

logger = logging.getLogger(__name__)


class VersionLog:
    """Ordered Versions of one project."""

    def __init__(self, project_id: str, versions: Optional[List[Version]] = None) -> None:
        self.project_id = project_id
        self._versions: List[Version] = []
        for version in versions or []:
            self._append(version)

    def _append(self, version: Version) -> None:
        if version.project_id != self.project_id:
            raise ValueError(
                f"Version {version.version_number} belongs to project '{version.project_id}', "
                f"not '{self.project_id}'"
            )
        latest = self._versions[-1].version_number if self._versions else 0
        if version.version_number <= latest:
            raise ValueError(
                f"Version numbers must increase: {version.version_number} after {latest}"
            )
        self._versions.append(version)

    def commit(
        self,
        tree: DiagramTree,
        name: str,
        *,
        description: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Version:
        """Snapshot a tree as the next version."""
        number = self._versions[-1].version_number + 1 if self._versions else 1
        version = Version(
            project_id=self.project_id,
            version_number=number,
            document=generate(tree),
            name=name,
            description=description,
            created_by=created_by,
        )
        self._append(version)
        logger.info("Committed version %d of project %s: %s", number, self.project_id, name)
        return version

    def get(self, version_number: int) -> Version:
        for version in self._versions:
            if version.version_number == version_number:
                return version
        raise KeyError(f"Project '{self.project_id}' has no version {version_number}")

    def latest(self) -> Optional[Version]:
        return self._versions[-1] if self._versions else None

    def load(self, version_number: int) -> DiagramTree:
        """Parse a stored version back into a tree."""
        return parse(self.get(version_number).document)

    def diff(self, old_number: int, new_number: int) -> List[Change]:
        return diff(self.load(old_number), self.load(new_number))

    def __iter__(self) -> Iterator[Version]:
        return iter(self._versions)

    def __len__(self) -> int:
        return len(self._versions)
