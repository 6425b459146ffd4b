"""File-system storage for card artifacts.

Writes are staged: data goes to ``<name>.part`` next to the target, is
verified, and only then replaces the target. A failed write leaves the
previous file (or its absence) untouched.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Optional

import constants
from errors import AssetError
from inventory.layout import ArtifactLayout
from inventory.model import ArtifactRef


class AssetStore:
    """Read, probe and atomically write artifacts under an ArtifactLayout."""

    def __init__(self, layout: ArtifactLayout):
        self.layout = layout
        self.writes = 0
        self._lock = threading.Lock()

    def path(self, ref: ArtifactRef) -> Path:
        return self.layout.resolve(ref)

    def exists(self, ref: ArtifactRef) -> bool:
        return self.path(ref).is_file()

    def read(self, ref: ArtifactRef) -> bytes:
        path = self.path(ref)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise AssetError(f"Missing artifact: {path}") from exc
        except OSError as exc:
            raise AssetError(f"Cannot read {path}: {exc}") from exc

    def write(
        self,
        ref: ArtifactRef,
        data: bytes,
        verify: Optional[Callable[[bytes], None]] = None,
    ) -> Path:
        """Stage ``data``, run ``verify`` on the staged bytes, then move into place.

        ``verify`` raises to reject the data; the staged file is removed and
        the exception propagates.
        """
        destination = self.path(ref)
        staged = destination.with_name(destination.name + constants.STAGING_SUFFIX)

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            staged.write_bytes(data)
            if verify is not None:
                verify(staged.read_bytes())
            staged.replace(destination)
        except OSError as exc:
            raise AssetError(f"Cannot write {destination}: {exc}") from exc
        finally:
            if staged.exists():
                staged.unlink(missing_ok=True)

        with self._lock:
            self.writes += 1
        return destination
