"""Sources of policy files that fixes read from and write back to."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from pathlib import Path

from regalint.filter import filter_ignored_paths


class FileProvider(ABC):
    """Lists, reads and writes policy files."""

    @abstractmethod
    def list_files(self) -> list[str]:
        """Names of all files provided."""

    @abstractmethod
    def get_file(self, file: str) -> bytes:
        """Contents of ``file``."""

    @abstractmethod
    def put_file(self, file: str, content: bytes) -> None:
        """Replace the contents of ``file``."""


class InMemoryFileProvider(FileProvider):
    """Files held in a dictionary of name to contents."""

    def __init__(self, files: dict[str, bytes]) -> None:
        self.files = files

    def list_files(self) -> list[str]:
        return list(self.files)

    def get_file(self, file: str) -> bytes:
        try:
            return self.files[file]
        except KeyError:
            raise FileNotFoundError(f"file {file} not found") from None

    def put_file(self, file: str, content: bytes) -> None:
        self.files[file] = content


class FSFileProvider(FileProvider):
    """Rego files found on disk under the given roots, minus ignored ones."""

    def __init__(self, ignore: list[str] | None = None, *roots: str) -> None:
        self.roots = list(roots)
        self.ignore = list(ignore or [])

    def list_files(self) -> list[str]:
        return filter_ignored_paths(self.roots, self.ignore, True, "")

    def get_file(self, file: str) -> bytes:
        return Path(file).read_bytes()

    def put_file(self, file: str, content: bytes) -> None:
        mode = os.stat(file).st_mode
        Path(file).write_bytes(content)
        os.chmod(file, mode)