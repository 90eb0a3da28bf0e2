"""Exceptions raised by cbzkit."""


class CbzError(Exception):
    """Base class for every error raised by the archive layer."""

    pass


class CbzFormatError(CbzError):
    """The underlying container is not a readable zip archive."""

    pass


class CbzFileSizeConversionError(CbzError):
    """Declared entry size doesn't fit the host's native size type."""

    def __init__(self, name: str, size: int):
        super().__init__(f"Cbz file size couldn't be converted: {name} ({size} bytes)")
        self.name = name
        self.size = size


class CbzFileNameEmptyError(CbzError):
    def __init__(self):
        super().__init__("Cbz file name is empty")


class CbzInvalidIndexError(CbzError):
    def __init__(self, reason: str):
        super().__init__(f"Cbz file invalid index {reason}")
        self.reason = reason


class CbzNotFoundError(CbzError):
    """Raised when an entry can't be found by name or by position."""

    def __init__(self, key):
        if isinstance(key, int):
            message = f"File at index {key} not found in cbz"
        else:
            message = f"File {key!r} not found in cbz"
        super().__init__(message)
        self.key = key


class CbzTooLargeError(CbzError):
    def __init__(self, max_files: int):
        super().__init__(
            f"Cbz is too large, it can contain a maximum of {max_files} files"
        )
        self.max_files = max_files


class CbzInsertionIncompleteError(CbzError):
    """An insertion was built without bytes or without an extension."""

    pass


class CbzInsertionNoExtensionError(CbzInsertionIncompleteError):
    def __init__(self):
        super().__init__("Cbz file insertion's extension not provided")


class CbzInsertionNoBytesError(CbzInsertionIncompleteError):
    def __init__(self):
        super().__init__("Cbz file insertion: no bytes set")


class CbzWriterFinishedError(CbzError):
    def __init__(self):
        super().__init__("Cbz writer is already finished")


class CbzReindexOutdirError(CbzError):
    """The repaired archive would land next to (and possibly over) its source."""

    def __init__(self, outdir):
        super().__init__(
            f"Output directory {outdir} must be different than the location of the archive"
        )
        self.outdir = outdir


class DownloadError(Exception):
    """HTTP retrieval failed after every retry, or returned an unusable payload."""

    pass
