import io
import zipfile

import pytest

from archive import ArchiveBuilder


def _entries(data):
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {n: zf.read(n) for n in zf.namelist()}


def test_finalize_contains_every_entry_in_order():
    builder = ArchiveBuilder()
    builder.add("Alex_Short_u1.png", b"one")
    builder.add("Kim_u3.png", b"three")
    assert len(builder) == 2
    data = builder.finalize()
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert zf.namelist() == ["Alex_Short_u1.png", "Kim_u3.png"]
        assert zf.getinfo("Kim_u3.png").compress_type == zipfile.ZIP_DEFLATED
    assert _entries(data)["Kim_u3.png"] == b"three"


def test_same_name_overwrites_earlier_entry():
    builder = ArchiveBuilder()
    builder.add("Kim.png", b"first")
    builder.add("Kim.png", b"second")
    assert len(builder) == 1
    assert _entries(builder.finalize()) == {"Kim.png": b"second"}


def test_names_are_sanitized():
    builder = ArchiveBuilder()
    name = builder.add("../evil/na:me.png", b"x")
    assert name == "evilname.png"
    assert builder.names() == ["evilname.png"]


def test_finalize_only_once():
    builder = ArchiveBuilder()
    builder.add("a.png", b"a")
    builder.finalize()
    assert builder.finalized
    with pytest.raises(RuntimeError):
        builder.finalize()
    with pytest.raises(RuntimeError):
        builder.add("b.png", b"b")


def test_identical_inputs_give_identical_archives():
    def build():
        b = ArchiveBuilder()
        b.add("a.png", b"a" * 1000)
        b.add("b.png", b"b" * 1000)
        return b.finalize()

    assert build() == build()


def test_large_archive_spills_to_disk():
    builder = ArchiveBuilder(spool_max_bytes=16)
    builder.add("big.bin", bytes(range(256)) * 64)
    assert _entries(builder.finalize())["big.bin"] == bytes(range(256)) * 64
