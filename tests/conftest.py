import io
import zipfile

import pytest
from PIL import Image

from cbzkit import log


def make_image_bytes(width=20, height=30, color=(200, 10, 10), fmt="PNG"):
    out = io.BytesIO()
    Image.new("RGB", (width, height), color).save(out, format=fmt)
    return out.getvalue()


def make_corrupted_cbz(name="x1-foo.png", data=b"page content that gets damaged"):
    """A zip whose only (stored) entry no longer matches its CRC."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(name, data, compress_type=zipfile.ZIP_STORED)
    return buf.getvalue().replace(data, data.upper())


@pytest.fixture(autouse=True)
def quiet_logs():
    log.set_verbosity(False, False)
    yield
    log.set_verbosity(False, False)


@pytest.fixture
def png_bytes():
    return make_image_bytes()
