"""Packing a set of image files into a Cbz."""

import concurrent.futures
import glob
import os
from typing import List, Optional

from .image import PageImage, ReadingOrder
from .index import encode_index
from .log import log_debug, log_verbose
from .writer import FinishedCbz, SharedCbzWriter

DEFAULT_WORKERS = min(8, (os.cpu_count() or 1) + 2)


def get_images_from_glob(pattern: str) -> List[str]:
    """Paths of the files matching ``pattern``, in sorted order."""
    return sorted(p for p in glob.glob(pattern) if os.path.isfile(p))


def _pack_one(
    cbz_writer: SharedCbzWriter,
    index: int,
    path: str,
    contrast: Optional[float],
    brightness: Optional[int],
    blur: Optional[float],
    autosplit: bool,
    reading_order: ReadingOrder,
) -> int:
    img = PageImage.open(path)
    if contrast is not None:
        img = img.set_contrast(contrast)
    if brightness is not None:
        img = img.set_brightness(brightness)
    if blur is not None:
        img = img.set_blur(blur)

    name = encode_index(index)
    if autosplit and img.is_landscape():
        log_debug(f"    Splitting landscape file {os.path.basename(path)}")
        first, second = img.autosplit(reading_order)
        first.insert_into_cbz_writer(cbz_writer, f"{name}-1")
        second.insert_into_cbz_writer(cbz_writer, f"{name}-2")
        return 2

    img.insert_into_cbz_writer(cbz_writer, name)
    return 1


def pack_imgs_to_cbz(
    paths: List[str],
    contrast: Optional[float] = None,
    brightness: Optional[int] = None,
    blur: Optional[float] = None,
    autosplit: bool = False,
    reading_order: ReadingOrder = ReadingOrder.RTL,
    workers: int = DEFAULT_WORKERS,
) -> FinishedCbz:
    """
    Decodes, filters and inserts every image of ``paths`` into a new Cbz.

    Page ``i`` of ``paths`` is stored as ``{i:05}.{ext}``, or as
    ``{i:05}-1`` and ``{i:05}-2`` when a landscape page gets split. Names are
    decided before the work is dispatched, so the page order holds whatever
    order the workers finish in.

    Raises:
        The first error met by any page, once every worker is done.
    """
    cbz_writer = SharedCbzWriter()
    pages = 0
    first_error = None

    with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, workers)) as ex:
        future_to_path = {
            ex.submit(
                _pack_one,
                cbz_writer,
                i,
                path,
                contrast,
                brightness,
                blur,
                autosplit,
                reading_order,
            ): path
            for i, path in enumerate(paths)
        }
        for fut in concurrent.futures.as_completed(future_to_path):
            path = future_to_path[fut]
            try:
                pages += fut.result()
                log_verbose(f"  Packed {os.path.basename(path)}")
            except Exception as e:
                print(f"  Error: Could not pack {path}: {e}")
                if first_error is None:
                    first_error = e

    if first_error is not None:
        raise first_error

    log_verbose(f"  Packed {len(paths)} images into {pages} pages.")
    return cbz_writer.finish()
