"""Staged writes: build outputs in a temporary workspace, then move them into place."""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from ..config.constants import STAGING_DIR_NAME, WORKSPACE_PREFIX
from .base import StagingError

if TYPE_CHECKING:
    from collections.abc import Iterator

LOG = logging.getLogger(__name__)


class StagedWriter:
    """
    Owns the temporary workspace of one source file.

    Outputs are written to the workspace first. Only when every producer has
    succeeded does :meth:`commit` move them into the destination folder, so a
    failed run never leaves a partially populated destination behind.

    Workspaces are created next to the destination by default, which keeps
    every move a same-filesystem rename.
    """

    def __init__(self, temp_root: Path | None = None) -> None:
        """Initialize with an optional parent directory for workspaces."""
        self.temp_root = temp_root

    @contextlib.contextmanager
    def workspace(self, near: Path | None = None) -> Iterator[Path]:
        """
        Create a process-unique workspace and remove it on every exit path.

        The workspace lives under ``temp_root`` when one was given, otherwise
        under ``near`` (created if needed), otherwise in the system temp
        directory.
        """
        parent = self.temp_root
        try:
            if parent is None and near is not None:
                near.mkdir(parents=True, exist_ok=True)
                parent = near
            root = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=parent))
        except OSError as e:
            msg = f"Could not create temporary workspace: {e}"
            raise StagingError(msg, cause=e) from e

        # Created with the default mode: the staging folder may become the destination
        workspace = root / STAGING_DIR_NAME
        try:
            workspace.mkdir()
        except OSError as e:
            shutil.rmtree(root, ignore_errors=True)
            msg = f"Could not create temporary workspace: {e}"
            raise StagingError(msg, cause=e) from e

        LOG.debug("Created workspace %s", workspace)
        try:
            yield workspace
        except BaseException:
            shutil.rmtree(root, ignore_errors=True)
            raise
        else:
            self._remove_workspace(root)

    def _remove_workspace(self, root: Path) -> None:
        try:
            shutil.rmtree(root)
        except FileNotFoundError:
            pass
        except OSError as e:
            msg = f"Failed to remove workspace {root}: {e}"
            raise StagingError(msg, cause=e) from e
        LOG.debug("Removed workspace %s", root)

    def commit(self, workspace: Path, destination: Path) -> list[str]:
        """
        Move every file of ``workspace`` into ``destination``; return the moved names.

        A missing destination is created by renaming the workspace itself.
        Otherwise files are renamed one by one, replaced files are kept aside
        until the last rename succeeded, and any failure restores the
        destination to its previous contents.

        Raises:
            StagingError: if the outputs could not be moved; the destination is
                then absent or unchanged

        """
        try:
            entries = sorted(workspace.iterdir())
            destination.parent.mkdir(parents=True, exist_ok=True)
            if os.path.lexists(destination):
                self._replace_entries(entries, destination)
            else:
                os.replace(workspace, destination)
        except OSError as e:
            msg = f"Failed to move outputs into {destination}: {e}"
            raise StagingError(msg, file_path=destination, cause=e) from e

        moved = [entry.name for entry in entries]
        LOG.debug("Moved %d files into %s", len(moved), destination)
        return moved

    def _replace_entries(self, entries: list[Path], destination: Path) -> None:
        backup_dir: Path | None = None
        backed_up: list[tuple[Path, Path]] = []
        moved: list[Path] = []
        try:
            for entry in entries:
                target = destination / entry.name
                if os.path.lexists(target):
                    if backup_dir is None:
                        backup_dir = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=destination.parent))
                    backup_path = backup_dir / entry.name
                    os.replace(target, backup_path)
                    backed_up.append((backup_path, target))
                os.replace(entry, target)
                moved.append(target)
        except OSError:
            if not self._rollback(moved, backed_up):
                LOG.error("Kept unrestored backups in %s", backup_dir)
                raise
            if backup_dir is not None:
                shutil.rmtree(backup_dir, ignore_errors=True)
            raise

        if backup_dir is not None:
            shutil.rmtree(backup_dir, ignore_errors=True)

    def _rollback(self, moved: list[Path], backed_up: list[tuple[Path, Path]]) -> bool:
        """Undo a partial commit; return whether every replaced file was restored."""
        restored = True
        for target in moved:
            try:
                target.unlink()
            except OSError:
                LOG.exception("Failed to remove %s after an incomplete commit", target)
        for backup_path, target in backed_up:
            try:
                os.replace(backup_path, target)
                LOG.info("Restored %s after an incomplete commit", target)
            except OSError:
                LOG.exception("Failed to restore backup of %s", target)
                restored = False
        return restored
