"""Fixed-width page indices and repair of legacy entry names."""

import string

from .errors import CbzFileNameEmptyError, CbzInvalidIndexError

# We artificially limit the amount of accepted files to 65535 per archive.
# It is the entry limit of a zip without zip64 extensions, and nobody reads that many pages.
MAX_FILE_NUMBER = 65535

# Enough digits to write MAX_FILE_NUMBER with a proper padding
COUNTER_SIZE = 5


def encode_index(index: int, width: int = COUNTER_SIZE) -> str:
    """Formats ``index`` as a zero-padded decimal string of ``width`` digits.

    Raises ValueError if the index is negative or needs more than ``width``
    digits; callers are expected to stay within range.
    """
    if index < 0 or index >= 10**width:
        raise ValueError(f"index {index} doesn't fit in {width} digits")
    return f"{index:0>{width}}"


def decode_index(name: str) -> int:
    """Reads the leading numeric run of a canonical name ("00007-1.png" -> 7)."""
    digits = ""
    for c in name:
        if c not in string.digits:
            break
        digits += c
    if not digits:
        raise CbzInvalidIndexError(name)
    return int(digits)


def repair_name(name: str, expected_width: int = COUNTER_SIZE) -> str:
    """
    Indices are often ill formatted (x1-foo.png, R2-bar.jpg, 7-baz.png...).
    Cleans up the numeric prefix of ``name`` and pads it to ``expected_width``.

    A single leading non-digit character is treated as noise and dropped,
    everything else up to the first '-' must be digits. The suffix after the
    '-' is kept as is.

    Raises:
        CbzFileNameEmptyError: if ``name`` is empty.
        CbzInvalidIndexError: if the prefix is longer than ``expected_width``
            or isn't a valid unsigned 16-bit integer.
    """
    if not name:
        raise CbzFileNameEmptyError()

    body = name if name[0] in string.digits else name[1:]
    index, _, suffix = body.partition("-")

    if (
        not index
        or len(index) > expected_width
        or any(c not in string.digits for c in index)
        or int(index) > 0xFFFF
    ):
        raise CbzInvalidIndexError(index)

    return f"{encode_index(int(index), expected_width)}-{suffix}"
