"""Reading Cbz archives."""

import io
import shutil
import sys
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, List, Union

from .errors import (
    CbzError,
    CbzFileSizeConversionError,
    CbzFormatError,
    CbzNotFoundError,
)

# zipfile surfaces damaged entry data through any of these
_CORRUPTION_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError)


class CbzFile:
    """One entry of an archive opened by ``CbzReader``."""

    def __init__(self, archive: zipfile.ZipFile, info: zipfile.ZipInfo):
        self._archive = archive
        self._info = info

    def __repr__(self):
        return f"CbzFile({self.name!r}, size={self.size})"

    @property
    def name(self) -> str:
        return self._info.filename

    @property
    def size(self) -> int:
        """Uncompressed size, as declared by the archive."""
        return self._info.file_size

    @property
    def info(self) -> zipfile.ZipInfo:
        return self._info

    def open(self) -> BinaryIO:
        """Opens the entry for streaming reads."""
        try:
            return self._archive.open(self._info)
        except zipfile.BadZipFile as e:
            raise CbzFormatError(f"Can't read {self.name}: {e}") from e

    def to_bytes(self) -> bytes:
        """
        Reads the whole entry.

        Raises:
            CbzFileSizeConversionError: If the declared size can't be held in
                memory on this host.
            CbzFormatError: If the entry data is corrupted.
        """
        if self.size > sys.maxsize:
            raise CbzFileSizeConversionError(self.name, self.size)
        with self.open() as fh:
            try:
                return fh.read()
            except _CORRUPTION_ERRORS as e:
                raise CbzFormatError(f"Can't read {self.name}: {e}") from e

    def copy_to(self, sink: BinaryIO) -> int:
        """Streams the entry into ``sink`` and returns the number of bytes copied."""
        with self.open() as fh:
            try:
                shutil.copyfileobj(fh, sink)
            except _CORRUPTION_ERRORS as e:
                raise CbzFormatError(f"Can't read {self.name}: {e}") from e
        return self.size


class CbzReader:
    """
    Read-only access to an archive's entries, always presented sorted by name.

    The physical order of zip entries depends on how the archive was
    assembled, so pages are sorted by filename before being handed out.

    Example:
        with CbzReader.from_path("chapter.cbz") as cbz:
            for cbz_file in cbz:
                print(cbz_file.name, len(cbz_file.to_bytes()))
    """

    def __init__(self, archive: zipfile.ZipFile):
        self._archive = archive
        self._file = None
        self._should_close = False

    @classmethod
    def from_reader(cls, reader: BinaryIO) -> "CbzReader":
        """Opens an archive from a seekable binary file-like object."""
        try:
            archive = zipfile.ZipFile(reader, "r")
        except zipfile.BadZipFile as e:
            raise CbzFormatError(f"Not a valid cbz archive: {e}") from e
        return cls(archive)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "CbzReader":
        fh = open(path, "rb")
        try:
            cbz = cls.from_reader(fh)
        except Exception:
            fh.close()
            raise
        cbz._should_close = True
        cbz._file = fh
        return cbz

    @classmethod
    def from_bytes(cls, data: bytes) -> "CbzReader":
        return cls.from_reader(io.BytesIO(data))

    def close(self):
        self._archive.close()
        if self._should_close:
            self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __len__(self) -> int:
        return len(self._archive.infolist())

    def is_empty(self) -> bool:
        return len(self) == 0

    def file_names(self) -> List[str]:
        """Entry names, sorted."""
        return sorted(self._archive.namelist())

    def read_by_name(self, name: str) -> CbzFile:
        try:
            info = self._archive.getinfo(name)
        except KeyError:
            raise CbzNotFoundError(name) from None
        return CbzFile(self._archive, info)

    def read_by_index(self, index: int) -> CbzFile:
        """Returns the ``index``-th entry in sorted order."""
        names = self.file_names()
        if index < 0 or index >= len(names):
            raise CbzNotFoundError(index)
        return self.read_by_name(names[index])

    def __iter__(self) -> Iterator[CbzFile]:
        for name in self.file_names():
            yield self.read_by_name(name)

    def iter_physical(self) -> Iterator[CbzFile]:
        """Entries in the order they are stored in the zip, unsorted."""
        for info in self._archive.infolist():
            yield CbzFile(self._archive, info)

    def for_each(self, f: Callable[[Union[CbzFile, CbzError]], None]):
        """
        Calls ``f`` for every entry in sorted order.

        If an entry can't be looked up, ``f`` receives the ``CbzError``
        instead of a ``CbzFile`` and iteration goes on.
        """
        for name in self.file_names():
            try:
                cbz_file = self.read_by_name(name)
            except CbzError as e:
                f(e)
                continue
            f(cbz_file)

    def try_for_each(self, f: Callable[[CbzFile], None]):
        """
        Calls ``f`` for every entry in sorted order.
        The first exception raised by ``f`` stops the iteration and is
        re-raised unchanged.
        """
        for cbz_file in self:
            f(cbz_file)
