"""Page images: decoding, light filtering and splitting of double pages."""

import enum
import io
from typing import Optional, Tuple

from PIL import Image, ImageEnhance, ImageFilter

from .insertion import CbzInsertionBuilder
from .log import log_debug

# Pillow format name -> file extension used inside the archive
_FORMAT_EXTENSIONS = {
    "JPEG": "jpg",
    "PNG": "png",
    "WEBP": "webp",
    "GIF": "gif",
    "BMP": "bmp",
    "TIFF": "tiff",
    "AVIF": "avif",
}


class ReadingOrder(str, enum.Enum):
    RTL = "rtl"
    LTR = "ltr"

    def __str__(self):
        return self.value


def format_extension(fmt: str) -> str:
    return _FORMAT_EXTENSIONS.get(fmt, fmt.lower())


class PageImage:
    """A decoded page together with the format it was decoded from."""

    def __init__(self, image: Image.Image, fmt: Optional[str] = None):
        self.image = image
        self.format = fmt

    @classmethod
    def open(cls, path) -> "PageImage":
        """Fails with Pillow's own errors if the file can't be decoded."""
        with Image.open(path) as im:
            fmt = im.format
            im.load()
            return cls(im.copy(), fmt)

    @classmethod
    def from_bytes(cls, data: bytes) -> "PageImage":
        im = Image.open(io.BytesIO(data))
        fmt = im.format
        im.load()
        return cls(im, fmt)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def is_portrait(self) -> bool:
        return self.height > self.width

    def is_landscape(self) -> bool:
        return not self.is_portrait()

    def _rgb(self) -> Image.Image:
        if self.image.mode in ("L", "RGB"):
            return self.image
        return self.image.convert("RGB")

    def set_contrast(self, contrast: float) -> "PageImage":
        """``contrast`` is a percentage: positive raises it, negative lowers it."""
        enhanced = ImageEnhance.Contrast(self._rgb()).enhance(1 + contrast / 100.0)
        return PageImage(enhanced, self.format)

    def set_brightness(self, brightness: int) -> "PageImage":
        """Adds ``brightness`` to every channel of every pixel, clamped to 0-255."""
        brightened = self._rgb().point(
            lambda p: max(0, min(255, p + brightness))
        )
        return PageImage(brightened, self.format)

    def set_blur(self, sigma: float) -> "PageImage":
        blurred = self.image.filter(ImageFilter.GaussianBlur(radius=sigma))
        return PageImage(blurred, self.format)

    def autosplit(self, reading_order: ReadingOrder) -> Tuple["PageImage", "PageImage"]:
        """Cuts a double page in two, returned in reading order."""
        half = self.width // 2
        left = PageImage(self.image.crop((0, 0, half, self.height)), self.format)
        right = PageImage(
            self.image.crop((half, 0, self.width, self.height)), self.format
        )
        if ReadingOrder(reading_order) is ReadingOrder.LTR:
            return left, right
        return right, left

    def to_bytes(self) -> Tuple[bytes, str]:
        """Encodes the page in its original format (PNG if unknown)."""
        fmt = self.format or "PNG"
        image = self.image
        if fmt == "JPEG" and image.mode not in ("L", "RGB", "CMYK"):
            image = image.convert("RGB")
        out = io.BytesIO()
        image.save(out, format=fmt)
        return out.getvalue(), format_extension(fmt)

    def insert_into_cbz_writer(self, cbz_writer, name: str):
        """Encodes the page and inserts it as ``{name}.{ext}``."""
        data, extension = self.to_bytes()
        insertion = (
            CbzInsertionBuilder.from_extension(extension)
            .set_bytes(data)
            .build_custom_str(name)
        )
        cbz_writer.insert_custom_str(insertion)
        log_debug(f"    Inserted page {name}.{extension} into zip")
