from __future__ import annotations

from pathlib import Path


class ProjectRootFinder:
    """Utility class for finding project roots by walking up the directory tree."""

    MAX_DEPTH = 100

    @classmethod
    def find_project_root(cls, start: Path, root_markers: list[str]) -> str:
        """Find the project root by walking up from ``start``.

        Args:
            start: File or directory to start from
            root_markers: List of filenames/directories that indicate a project root

        Returns:
            URI string of the project root directory, or of ``start``'s directory
            when no marker is found
        """
        start_dir = start if start.is_dir() else start.parent
        check_dir = start_dir
        depth = 0

        while depth <= cls.MAX_DEPTH:
            for marker in root_markers:
                try:
                    if (check_dir / marker).exists():
                        return check_dir.resolve().as_uri()
                except OSError:
                    continue

            parent = check_dir.parent
            if parent == check_dir:
                break
            check_dir = parent
            depth += 1

        return start_dir.resolve().as_uri()
