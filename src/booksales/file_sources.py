"""File source collaborators.

A file source lists ``FileDescriptor`` entries for a folder and returns the
raw bytes of a file by id. ``LocalFolderSource`` serves a directory tree; a
remote drive can be plugged in by implementing the same two methods.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Protocol

from .errors import SourceEnumerationError


@dataclass(frozen=True)
class FileDescriptor:
    """Identity of one source file: opaque id plus display name."""

    id: str
    name: str

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower()


class FileSource(Protocol):
    def list_files(self, folder_id: str) -> List[FileDescriptor]:
        ...

    def download(self, file_id: str) -> bytes:
        ...


class LocalFolderSource:
    """Serve files below ``root``; ids are POSIX paths relative to the root."""

    def __init__(self, root: str | Path):
        self.root = Path(root).expanduser().resolve()

    def _resolve(self, relative: str) -> Path:
        path = (self.root / relative).resolve()
        if path != self.root and self.root not in path.parents:
            raise ValueError(f"Path escapes source root: {relative}")
        return path

    def list_files(self, folder_id: str = ".") -> List[FileDescriptor]:
        """List regular files directly inside ``folder_id``, sorted by name."""

        try:
            folder = self._resolve(folder_id)
        except ValueError as exc:
            raise SourceEnumerationError(str(exc)) from exc
        if not folder.is_dir():
            raise SourceEnumerationError(f"Source folder not found: {folder}")
        try:
            entries = sorted(p for p in folder.iterdir() if p.is_file())
        except OSError as exc:
            raise SourceEnumerationError(f"Cannot list {folder}: {exc}") from exc
        return [FileDescriptor(id=p.relative_to(self.root).as_posix(), name=p.name) for p in entries]

    def download(self, file_id: str) -> bytes:
        return self._resolve(file_id).read_bytes()
