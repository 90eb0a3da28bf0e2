"""
Insertions: validated, not-yet-written requests to add one entry to a Cbz.

An insertion is built in two steps: first pick where the extension comes
from (a source filename or a raw extension), then set the bytes, and finish
with one of the ``build*`` methods, each picking a naming strategy:

    insertion = (
        CbzInsertionBuilder.from_filename("page.png")
        .set_bytes(data)
        .build_indexed(7)
    )
    writer.insert_at(insertion)
"""

import datetime
import zipfile
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import BinaryIO, Optional, Tuple, Union

from .errors import CbzInsertionNoBytesError, CbzInsertionNoExtensionError


@dataclass(frozen=True)
class InsertOptions:
    """Per-entry zip options."""

    compression: int = zipfile.ZIP_DEFLATED
    compresslevel: Optional[int] = None
    date_time: Optional[Tuple[int, int, int, int, int, int]] = None

    def to_zip_info(self, filename: str) -> zipfile.ZipInfo:
        date_time = self.date_time or datetime.datetime.now().timetuple()[:6]
        info = zipfile.ZipInfo(filename, date_time=date_time)
        info.compress_type = self.compression
        info.external_attr = 0o644 << 16
        return info


# -----------------------------------------------------------
# Naming strategies
# -----------------------------------------------------------
@dataclass(frozen=True)
class Auto:
    """Named after the writer's current size."""

    pass


@dataclass(frozen=True)
class Indexed:
    """Named after an explicit page index."""

    index: int


@dataclass(frozen=True)
class CustomStr:
    """Named after an arbitrary stem, e.g. "00007-1" for half a split page."""

    value: str


Naming = Union[Auto, Indexed, CustomStr]


@dataclass(frozen=True)
class CbzInsertion:
    extension: str
    data: Union[bytes, memoryview]
    options: InsertOptions
    naming: Naming


class CbzInsertionBuilder:
    """Collects the parts of a ``CbzInsertion`` and validates them on build."""

    def __init__(self, filename: Optional[str] = None, extension: Optional[str] = None):
        self._filename = filename
        self._extension = extension
        self._options: Optional[InsertOptions] = None
        self._data: Optional[Union[bytes, memoryview]] = None

    @classmethod
    def from_filename(cls, filename: str) -> "CbzInsertionBuilder":
        """The extension will be taken from ``filename``'s suffix."""
        return cls(filename=filename)

    @classmethod
    def from_extension(cls, extension: str) -> "CbzInsertionBuilder":
        return cls(extension=extension)

    def set_options(self, options: InsertOptions) -> "CbzInsertionBuilder":
        self._options = options
        return self

    def set_bytes(self, data) -> "CbzInsertionBuilder":
        """Stores a private copy of ``data``."""
        self._data = bytes(data)
        return self

    def set_bytes_ref(self, data) -> "CbzInsertionBuilder":
        """Stores a view on ``data``, which must not change until inserted."""
        self._data = memoryview(data)
        return self

    def set_bytes_from_reader(self, reader: BinaryIO) -> "CbzInsertionBuilder":
        """Reads ``reader`` to the end. Read errors propagate."""
        self._data = reader.read()
        return self

    def build(self) -> CbzInsertion:
        return self._build(Auto())

    def build_indexed(self, index: int) -> CbzInsertion:
        return self._build(Indexed(index))

    def build_custom_str(self, value: str) -> CbzInsertion:
        return self._build(CustomStr(value))

    def _resolve_extension(self) -> str:
        if self._filename is not None:
            # "page." and ".hidden" both end up with an empty extension
            extension = PurePosixPath(self._filename).suffix[1:]
        else:
            extension = self._extension or ""
        if not extension:
            raise CbzInsertionNoExtensionError()
        return extension

    def _build(self, naming: Naming) -> CbzInsertion:
        if self._data is None:
            raise CbzInsertionNoBytesError()

        return CbzInsertion(
            extension=self._resolve_extension(),
            data=self._data,
            options=self._options or InsertOptions(),
            naming=naming,
        )
