"""Repair of archives whose page names carry broken numeric prefixes."""

import os
from pathlib import Path
from typing import Union

from .errors import CbzReindexOutdirError
from .index import COUNTER_SIZE, repair_name
from .insertion import InsertOptions
from .log import log_debug, log_verbose
from .reader import CbzReader
from .writer import CbzWriter, FinishedCbz


def reindex(reader: CbzReader, expected_width: int = COUNTER_SIZE) -> FinishedCbz:
    """
    Copies every entry of ``reader`` into a new archive under its repaired
    name. Content bytes are copied untouched.

    Entries are visited in physical order since the names don't sort
    correctly yet. The first entry that can't be repaired aborts the whole
    copy, nothing is returned in that case.
    """
    writer = CbzWriter()
    try:
        for cbz_file in reader.iter_physical():
            new_name = repair_name(cbz_file.name, expected_width)
            log_debug(f"    {cbz_file.name} -> {new_name}")
            writer.insert_raw(
                new_name,
                cbz_file.to_bytes(),
                InsertOptions(
                    compression=cbz_file.info.compress_type,
                    date_time=cbz_file.info.date_time,
                ),
            )
    except Exception:
        # The partial copy is dropped, its zip still has to be closed
        writer.finish()
        raise
    return writer.finish()


def reindex_archive(
    archive_path: Union[str, Path],
    outdir: Union[str, Path],
    expected_width: int = COUNTER_SIZE,
) -> Path:
    """
    Repairs ``archive_path`` and writes the result, under the same file
    name, into ``outdir``.

    Raises:
        CbzReindexOutdirError: If ``outdir`` is the directory holding the
            source archive. Checked before anything is read or written.
    """
    archive_path = Path(archive_path)
    outdir = Path(outdir)
    if os.path.abspath(outdir) == os.path.abspath(archive_path.parent) or (
        outdir.exists() and outdir.resolve() == archive_path.resolve().parent
    ):
        raise CbzReindexOutdirError(outdir)

    log_verbose(f"  Reindexing {archive_path.name} (width {expected_width})")
    with CbzReader.from_path(archive_path) as reader:
        finished = reindex(reader, expected_width)

    outdir.mkdir(parents=True, exist_ok=True)
    output_path = outdir / archive_path.name
    finished.write_to_path(output_path)
    print(f"CBZ saved → {output_path.name}")
    return output_path
