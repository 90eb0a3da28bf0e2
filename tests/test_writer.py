import io
import threading
import zipfile

import pytest

from cbzkit import index
from cbzkit.errors import CbzTooLargeError, CbzWriterFinishedError
from cbzkit.insertion import CbzInsertionBuilder, InsertOptions
from cbzkit.reader import CbzReader
from cbzkit.writer import CbzWriter, SharedCbzWriter


def auto(ext, data=b"data"):
    return CbzInsertionBuilder.from_extension(ext).set_bytes(data).build()


def test_auto_numbering_starts_at_one():
    writer = CbzWriter()
    for ext, data in [("png", b"one"), ("jpg", b"two"), ("png", b"three")]:
        writer.insert(auto(ext, data))
    assert len(writer) == 3

    cbz = CbzReader.from_bytes(writer.finish().getvalue())
    assert cbz.file_names() == ["00001.png", "00002.jpg", "00003.png"]
    assert [f.to_bytes() for f in cbz] == [b"one", b"two", b"three"]


def test_insert_at_and_custom_str():
    writer = CbzWriter()
    writer.insert_at(CbzInsertionBuilder.from_filename("a.webp").set_bytes(b"a").build_indexed(12))
    writer.insert_custom_str(
        CbzInsertionBuilder.from_extension("png").set_bytes(b"b").build_custom_str("00007-2")
    )
    cbz = CbzReader.from_bytes(writer.finish().getvalue())
    assert cbz.file_names() == ["00007-2.png", "00012.webp"]


def test_insert_rejects_other_naming():
    writer = CbzWriter()
    indexed = CbzInsertionBuilder.from_extension("png").set_bytes(b"x").build_indexed(1)
    with pytest.raises(TypeError):
        writer.insert(indexed)
    with pytest.raises(TypeError):
        writer.insert_custom_str(indexed)
    with pytest.raises(TypeError):
        writer.insert_at(auto("png"))
    assert writer.is_empty()


def test_add_dispatches_on_naming():
    writer = CbzWriter()
    builder = CbzInsertionBuilder.from_extension("png").set_bytes(b"x")
    writer.add(builder.build())
    writer.add(builder.build_indexed(5))
    writer.add(builder.build_custom_str("cover"))
    cbz = CbzReader.from_bytes(writer.finish().getvalue())
    assert cbz.file_names() == ["00001.png", "00005.png", "cover.png"]


def test_capacity_is_enforced_before_writing(monkeypatch):
    monkeypatch.setattr(index, "MAX_FILE_NUMBER", 3)
    writer = CbzWriter()
    for _ in range(3):
        writer.insert(auto("png"))

    with pytest.raises(CbzTooLargeError) as excinfo:
        writer.insert(auto("png"))
    assert excinfo.value.max_files == 3
    assert writer.size == 3

    with pytest.raises(CbzTooLargeError):
        writer.insert_raw("extra.png", b"x")
    assert CbzReader.from_bytes(writer.finish().getvalue()).file_names() == [
        "00001.png",
        "00002.png",
        "00003.png",
    ]


def test_insert_raw_from_stream_and_options():
    writer = CbzWriter()
    writer.insert_raw(
        "00001.bin",
        io.BytesIO(b"streamed" * 100),
        InsertOptions(compression=zipfile.ZIP_STORED),
    )
    data = writer.finish().getvalue()
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        info = zf.getinfo("00001.bin")
        assert info.compress_type == zipfile.ZIP_STORED
        assert zf.read(info) == b"streamed" * 100


def test_finish_is_final():
    writer = CbzWriter()
    writer.insert(auto("png"))
    writer.finish()
    assert writer.finished
    with pytest.raises(CbzWriterFinishedError):
        writer.insert(auto("png"))
    with pytest.raises(CbzWriterFinishedError):
        writer.finish()
    assert writer.size == 1


def test_finished_archive_exports(tmp_path):
    writer = CbzWriter()
    writer.insert(auto("png", b"page"))
    finished = writer.finish()

    sink = io.BytesIO()
    finished.write_to(sink)
    assert sink.getvalue() == bytes(finished)

    path = tmp_path / "out.cbz"
    finished.write_to_path(path)
    assert path.read_bytes() == finished.getvalue()
    assert zipfile.is_zipfile(path)


def test_empty_archive_is_valid():
    finished = CbzWriter().finish()
    assert CbzReader.from_bytes(finished.getvalue()).is_empty()


def test_writer_over_file_stream(tmp_path):
    path = tmp_path / "direct.cbz"
    with open(path, "w+b") as fh:
        writer = CbzWriter(fh)
        writer.insert(auto("jpg", b"jpeg"))
        finished = writer.finish()
        assert finished.getvalue() == path.read_bytes()
    with CbzReader.from_path(path) as cbz:
        assert cbz.read_by_name("00001.jpg").to_bytes() == b"jpeg"


def test_shared_writer_refuses_auto():
    shared = SharedCbzWriter()
    with pytest.raises(TypeError):
        shared.add(auto("png"))
    assert len(shared) == 0


def test_shared_writer_from_many_threads():
    shared = SharedCbzWriter()

    def produce(i):
        insertion = (
            CbzInsertionBuilder.from_extension("png")
            .set_bytes(str(i).encode())
            .build_indexed(i)
        )
        shared.insert_at(insertion)

    threads = [threading.Thread(target=produce, args=(i,)) for i in range(50, 0, -1)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(shared) == 50
    cbz = CbzReader.from_bytes(shared.finish().getvalue())
    assert cbz.file_names() == [f"{i:05}.png" for i in range(1, 51)]
    assert cbz.read_by_index(0).to_bytes() == b"1"


class BrokenReader(io.RawIOBase):
    """Fails like a file whose disk went away while being read."""

    def readable(self):
        return True

    def read(self, size=-1):
        raise OSError("device not ready")


def test_failed_stream_leaves_no_entry():
    writer = CbzWriter()
    writer.insert(auto("png", b"kept"))
    with pytest.raises(OSError, match="device not ready"):
        writer.insert_raw("00002.png", BrokenReader())
    assert writer.size == 1

    writer.insert(auto("jpg", b"next"))
    cbz = CbzReader.from_bytes(writer.finish().getvalue())
    assert cbz.file_names() == ["00001.png", "00002.jpg"]
    assert len(cbz) == writer.size


def test_insert_raw_compresslevel():
    data = b"a" * 10000
    writer = CbzWriter()
    writer.insert_raw("00001.txt", data, InsertOptions(compresslevel=0))
    writer.insert_raw("00002.txt", data, InsertOptions(compresslevel=9))
    with zipfile.ZipFile(io.BytesIO(writer.finish().getvalue())) as zf:
        assert zf.getinfo("00001.txt").compress_size >= len(data)
        assert zf.getinfo("00002.txt").compress_size < 100
        assert zf.read("00001.txt") == zf.read("00002.txt") == data
