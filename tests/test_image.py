import io

import pytest
from PIL import Image, UnidentifiedImageError

from cbzkit.image import PageImage, ReadingOrder, format_extension
from cbzkit.reader import CbzReader
from cbzkit.writer import CbzWriter, SharedCbzWriter
from conftest import make_image_bytes


def two_halves(left=(255, 0, 0), right=(0, 0, 255), width=40, height=20):
    im = Image.new("RGB", (width, height), left)
    im.paste(Image.new("RGB", (width // 2, height), right), (width // 2, 0))
    return PageImage(im, "PNG")


def test_from_bytes_keeps_format(png_bytes):
    page = PageImage.from_bytes(png_bytes)
    assert page.format == "PNG"
    assert (page.width, page.height) == (20, 30)
    assert page.is_portrait()
    assert not page.is_landscape()


def test_open(tmp_path):
    path = tmp_path / "page.jpg"
    path.write_bytes(make_image_bytes(fmt="JPEG"))
    page = PageImage.open(path)
    assert page.format == "JPEG"
    assert page.to_bytes()[1] == "jpg"


def test_open_not_an_image(tmp_path):
    path = tmp_path / "page.png"
    path.write_bytes(b"not an image")
    with pytest.raises(UnidentifiedImageError):
        PageImage.open(path)


@pytest.mark.parametrize(
    "fmt,extension",
    [("JPEG", "jpg"), ("PNG", "png"), ("WEBP", "webp"), ("XYZ", "xyz")],
)
def test_format_extension(fmt, extension):
    assert format_extension(fmt) == extension


@pytest.mark.parametrize(
    "order,first,second",
    [
        (ReadingOrder.LTR, (255, 0, 0), (0, 0, 255)),
        (ReadingOrder.RTL, (0, 0, 255), (255, 0, 0)),
        ("ltr", (255, 0, 0), (0, 0, 255)),
    ],
)
def test_autosplit_follows_reading_order(order, first, second):
    page = two_halves()
    assert page.is_landscape()
    a, b = page.autosplit(order)
    assert (a.width, a.height) == (20, 20)
    assert (b.width, b.height) == (20, 20)
    assert a.image.getpixel((0, 0)) == first
    assert b.image.getpixel((0, 0)) == second


def test_brightness_is_clamped():
    page = PageImage(Image.new("RGB", (4, 4), (200, 10, 10)), "PNG")
    assert page.set_brightness(10).image.getpixel((0, 0)) == (210, 20, 20)
    assert page.set_brightness(100).image.getpixel((0, 0)) == (255, 110, 110)
    assert page.set_brightness(-50).image.getpixel((0, 0)) == (150, 0, 0)


def test_zero_contrast_is_identity():
    page = PageImage(Image.new("RGB", (4, 4), (120, 60, 30)), "PNG")
    assert page.set_contrast(0).image.getpixel((1, 1)) == (120, 60, 30)


def test_blur_keeps_size_and_format():
    page = two_halves().set_blur(2)
    assert (page.width, page.height) == (40, 20)
    assert page.format == "PNG"


def test_to_bytes_defaults_to_png():
    data, extension = PageImage(Image.new("RGB", (3, 3))).to_bytes()
    assert extension == "png"
    assert Image.open(io.BytesIO(data)).format == "PNG"


def test_to_bytes_converts_alpha_for_jpeg():
    data, extension = PageImage(Image.new("RGBA", (3, 3)), "JPEG").to_bytes()
    assert extension == "jpg"
    assert Image.open(io.BytesIO(data)).mode == "RGB"


def test_insert_into_cbz_writer(png_bytes):
    writer = CbzWriter()
    PageImage.from_bytes(png_bytes).insert_into_cbz_writer(writer, "00003-1")
    shared = SharedCbzWriter()
    PageImage.from_bytes(png_bytes).insert_into_cbz_writer(shared, "00004")

    assert CbzReader.from_bytes(writer.finish().getvalue()).file_names() == ["00003-1.png"]
    assert CbzReader.from_bytes(shared.finish().getvalue()).file_names() == ["00004.png"]
