"""Writing Cbz archives."""

import io
import shutil
import threading
import zipfile
from pathlib import Path
from typing import BinaryIO, Optional, Union

from . import index as _index
from .errors import CbzTooLargeError, CbzWriterFinishedError
from .insertion import Auto, CbzInsertion, CustomStr, Indexed, InsertOptions
from .log import log_debug


class FinishedCbz:
    """A finalized archive. It can only be exported."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream

    def getvalue(self) -> bytes:
        if isinstance(self._stream, io.BytesIO):
            return self._stream.getvalue()
        self._stream.seek(0)
        return self._stream.read()

    def __bytes__(self) -> bytes:
        return self.getvalue()

    def write_to(self, sink: BinaryIO):
        """Copies the whole archive into ``sink``."""
        self._stream.seek(0)
        shutil.copyfileobj(self._stream, sink)

    def write_to_path(self, path: Union[str, Path]):
        """Writes the archive to a file (created or truncated) at ``path``."""
        with open(path, "wb") as fh:
            self.write_to(fh)


class CbzWriter:
    """
    Accumulates entries into a new zip archive.

    Not thread-safe: wrap it in a ``SharedCbzWriter`` to feed it from several
    threads. Every insert goes through ``insert_raw``, the only place where
    the archive is mutated and where its capacity is enforced.

    Example:
        writer = CbzWriter()
        writer.insert(CbzInsertionBuilder.from_extension("png").set_bytes(data).build())
        writer.finish().write_to_path("out.cbz")
    """

    def __init__(self, stream: Optional[BinaryIO] = None):
        self._stream = stream if stream is not None else io.BytesIO()
        self._archive: Optional[zipfile.ZipFile] = zipfile.ZipFile(self._stream, "w")
        self._size = 0

    @property
    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self._size == 0

    @property
    def finished(self) -> bool:
        return self._archive is None

    # -----------------------------------------------------------
    # High level inserts, prefer these over insert_raw
    # -----------------------------------------------------------
    def insert(self, insertion: CbzInsertion):
        """Inserts an ``Auto`` insertion, named after the next 1-based position."""
        if not isinstance(insertion.naming, Auto):
            raise TypeError("insert() expects an insertion built with build()")
        self.add(insertion)

    def insert_at(self, insertion: CbzInsertion):
        """Inserts an ``Indexed`` insertion. Uniqueness is up to the caller."""
        if not isinstance(insertion.naming, Indexed):
            raise TypeError("insert_at() expects an insertion built with build_indexed()")
        self.add(insertion)

    def insert_custom_str(self, insertion: CbzInsertion):
        if not isinstance(insertion.naming, CustomStr):
            raise TypeError(
                "insert_custom_str() expects an insertion built with build_custom_str()"
            )
        self.add(insertion)

    def add(self, insertion: CbzInsertion):
        """Inserts any insertion, naming it according to its strategy."""
        self.insert_raw(
            self.filename_for(insertion), insertion.data, insertion.options
        )

    def filename_for(self, insertion: CbzInsertion) -> str:
        naming = insertion.naming
        if isinstance(naming, Auto):
            stem = _index.encode_index(self._size + 1)
        elif isinstance(naming, Indexed):
            stem = _index.encode_index(naming.index)
        else:
            stem = naming.value
        return f"{stem}.{insertion.extension}"

    # -----------------------------------------------------------
    # Raw insert
    # -----------------------------------------------------------
    def insert_raw(
        self,
        filename: str,
        data: Union[bytes, memoryview, BinaryIO],
        options: Optional[InsertOptions] = None,
    ):
        """
        Writes one entry named ``filename``.

        Args:
            filename: Entry name, used as is.
            data: The entry content, or a binary file-like object read to
                the end before anything is written.
            options: Zip options for the entry, defaults to deflate.

        Raises:
            CbzWriterFinishedError: If ``finish()`` was already called.
            CbzTooLargeError: If the archive already holds MAX_FILE_NUMBER
                entries. Nothing is written in that case.
        """
        if self._archive is None:
            raise CbzWriterFinishedError()
        if self._size >= _index.MAX_FILE_NUMBER:
            raise CbzTooLargeError(_index.MAX_FILE_NUMBER)

        if not isinstance(data, (bytes, bytearray, memoryview)):
            # Read errors must surface before the entry is opened
            data = data.read()

        options = options or InsertOptions()
        self._archive.writestr(
            options.to_zip_info(filename), data, compresslevel=options.compresslevel
        )

        self._size += 1
        log_debug(f"    Inserted {filename} into zip ({self._size} files)")

    def finish(self) -> FinishedCbz:
        """Writes the central directory. No insert is possible afterwards."""
        if self._archive is None:
            raise CbzWriterFinishedError()
        archive, self._archive = self._archive, None
        archive.close()
        return FinishedCbz(self._stream)


class SharedCbzWriter:
    """
    Lets several threads feed the same ``CbzWriter``.

    Only the zip write itself happens under the lock, so producers should do
    their downloading or decoding before calling in. Completion order is
    random under concurrency, which is why ``Auto`` insertions are refused:
    every page must carry its own index or name.
    """

    def __init__(self, writer: Optional[CbzWriter] = None):
        self._writer = writer if writer is not None else CbzWriter()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._writer)

    def insert_at(self, insertion: CbzInsertion):
        with self._lock:
            self._writer.insert_at(insertion)

    def insert_custom_str(self, insertion: CbzInsertion):
        with self._lock:
            self._writer.insert_custom_str(insertion)

    def add(self, insertion: CbzInsertion):
        if isinstance(insertion.naming, Auto):
            raise TypeError("auto-numbered insertions aren't allowed on a shared writer")
        with self._lock:
            self._writer.add(insertion)

    def finish(self) -> FinishedCbz:
        with self._lock:
            return self._writer.finish()

    def into_inner(self) -> CbzWriter:
        return self._writer
