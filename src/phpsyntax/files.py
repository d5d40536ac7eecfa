from __future__ import annotations

import os
from pathlib import Path
import re
from typing import Callable, ContextManager, Iterable, Iterator

from phpsyntax.exceptions import FileEnumerationError
from phpsyntax.options import CheckOptions

_PHP_FILE_RE = re.compile(r".\.php$", re.IGNORECASE)

ScandirFn = Callable[[Path], ContextManager[Iterable[os.DirEntry]]]


def is_php_file(name: str) -> bool:
    return _PHP_FILE_RE.search(name) is not None


class FilesProvider:
    """Lazily lists the files to check, relative to the options' directory.

    Explicit include entries come first, then a walk of the directory where
    each directory's PHP files precede its subdirectories. The counters are
    reset by every call to :meth:`iter_files` and are final once the iterator
    is exhausted.
    """

    def __init__(
        self,
        options: CheckOptions,
        *,
        sep: str = os.sep,
        scandir: ScandirFn = os.scandir,
    ):
        self._directory = Path(options.directory)
        self._include = tuple(options.include)
        self._exclude = tuple(options.exclude)
        self._sep = sep
        self._scandir = scandir
        self.files_provided = 0
        self.items_skipped = 0

    def iter_files(self) -> Iterator[str]:
        self.files_provided = 0
        self.items_skipped = 0
        for file in self._include:
            self.files_provided += 1
            yield file
        for file in self._iter_directory(""):
            self.files_provided += 1
            yield file

    __iter__ = iter_files

    def is_excluded(self, relative_path: str) -> bool:
        if relative_path in self._exclude:
            return True
        return any(
            relative_path.startswith(exclude + self._sep) for exclude in self._exclude
        )

    def _iter_directory(self, relative_directory: str) -> Iterator[str]:
        absolute_directory = (
            self._directory / relative_directory if relative_directory else self._directory
        )
        files: list[str] = []
        subdirectories: list[str] = []
        try:
            with self._scandir(absolute_directory) as entries:
                names = sorted(
                    (entry.name, entry.is_dir(follow_symlinks=False)) for entry in entries
                )
        except OSError as exc:
            raise FileEnumerationError(
                f"Failed to list contents of directory {absolute_directory}: "
                f"{exc.strerror or exc}"
            ) from exc
        for name, is_dir in names:
            relative_item = (
                relative_directory + self._sep + name if relative_directory else name
            )
            if self.is_excluded(relative_item):
                self.items_skipped += 1
                continue
            if is_dir:
                subdirectories.append(relative_item)
            elif is_php_file(name):
                files.append(relative_item)
        yield from files
        for subdirectory in subdirectories:
            yield from self._iter_directory(subdirectory)
