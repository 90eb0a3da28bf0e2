"""
cbzkit - read, write, repair and download Comic Book Zip (CBZ) archives.

A CBZ is a plain zip whose entries are page images named so that sorting
them by name gives the reading order (00001.png, 00002.jpg, ...).
"""

from .errors import (
    CbzError,
    CbzFileNameEmptyError,
    CbzFileSizeConversionError,
    CbzFormatError,
    CbzInsertionIncompleteError,
    CbzInsertionNoBytesError,
    CbzInsertionNoExtensionError,
    CbzInvalidIndexError,
    CbzNotFoundError,
    CbzReindexOutdirError,
    CbzTooLargeError,
    CbzWriterFinishedError,
    DownloadError,
)
from .index import COUNTER_SIZE, MAX_FILE_NUMBER, decode_index, encode_index, repair_name
from .insertion import Auto, CbzInsertion, CbzInsertionBuilder, CustomStr, Indexed, InsertOptions
from .reader import CbzFile, CbzReader
from .reindex import reindex, reindex_archive
from .writer import CbzWriter, FinishedCbz, SharedCbzWriter

__all__ = [
    "COUNTER_SIZE",
    "MAX_FILE_NUMBER",
    "Auto",
    "CbzError",
    "CbzFile",
    "CbzFileNameEmptyError",
    "CbzFileSizeConversionError",
    "CbzFormatError",
    "CbzInsertion",
    "CbzInsertionBuilder",
    "CbzInsertionIncompleteError",
    "CbzInsertionNoBytesError",
    "CbzInsertionNoExtensionError",
    "CbzInvalidIndexError",
    "CbzNotFoundError",
    "CbzReader",
    "CbzReindexOutdirError",
    "CbzTooLargeError",
    "CbzWriter",
    "CbzWriterFinishedError",
    "CustomStr",
    "DownloadError",
    "FinishedCbz",
    "Indexed",
    "InsertOptions",
    "SharedCbzWriter",
    "decode_index",
    "encode_index",
    "reindex",
    "reindex_archive",
    "repair_name",
]

__version__ = "0.1.0"
