"""Merging several Cbz archives into one."""

import glob
import os
import re
from pathlib import Path
from typing import Iterable, Union

from .errors import CbzInsertionNoExtensionError
from .insertion import CbzInsertionBuilder
from .log import log_verbose
from .reader import CbzFile, CbzReader
from .writer import CbzWriter, FinishedCbz


def sanitize_filename(name: str) -> str:
    return re.sub(r'[\\/*?:"<>|]', "", name)


def merge_archives(paths: Iterable[Union[str, Path]]) -> FinishedCbz:
    """
    Appends the pages of every archive of ``paths``, in that order, to a new
    archive. Pages are renumbered from 00001 and keep their extension.
    """
    merged_cbz_writer = CbzWriter()

    def append(cbz_file: CbzFile):
        extension = Path(cbz_file.name).suffix[1:]
        if not extension:
            print(f"  Error: Extension couldn't be read from {cbz_file.name}")
            raise CbzInsertionNoExtensionError()
        insertion = (
            CbzInsertionBuilder.from_extension(extension)
            .set_bytes(cbz_file.to_bytes())
            .build()
        )
        merged_cbz_writer.insert(insertion)

    try:
        for path in paths:
            log_verbose(f"  Merging {os.path.basename(path)}")
            with CbzReader.from_path(path) as current_cbz:
                current_cbz.try_for_each(append)
    except Exception:
        merged_cbz_writer.finish()
        raise

    return merged_cbz_writer.finish()


def merge_glob(pattern: str, outdir: Union[str, Path], name: str) -> Path:
    """Merges every archive matching ``pattern`` into ``outdir/{name}.cbz``."""
    paths = sorted(glob.glob(pattern))
    if not paths:
        print(f"  Warning: No archive matches {pattern}")
    finished = merge_archives(paths)

    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    output_path = outdir / sanitize_filename(f"{name}.cbz")
    finished.write_to_path(output_path)
    print(f"CBZ saved → {output_path.name}")
    return output_path
