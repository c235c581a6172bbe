import struct

import pytest

from pixelops.dictionary import Dictionary, Glyph
from pixelops.image import BinaryImage, bit_count, get_bit

HEX_A = "FFE" + "0" * 19
HEX_B = "8" + "0" * 20 + "1"
HEX_C = "F0F0F0F0F0F0F0F0F0F0F0"


def _dm_text():
    return "\n".join([
        f"{HEX_A}$a$0.0.11$11",
        f"{HEX_B}$b$0.0.2$11",
        "no dollar here",
        f"{HEX_C}$c$0.0.44$11",
    ])


def test_from_dm_shape_and_bits():
    glyph = Glyph.from_dm(HEX_A, "a")
    assert glyph.height == 11
    assert glyph.width == len(HEX_A) * 4 // 11
    expected = sum(bin(int(c, 16)).count("1") for c in HEX_A)
    assert glyph.bit_count == expected
    assert sum(bit_count(b) for b in glyph.data) == glyph.bit_count
    assert all(get_bit(glyph.data[i // 8], i % 8) for i in range(11))
    assert glyph.name == "a"


def test_name_is_truncated():
    glyph = Glyph.from_dm(HEX_A, "abcdefghij")
    assert glyph.name == "abcdefg"
    glyph.set_name("xyzxyzxyz")
    assert glyph.name == "xyzxyzx"


def test_glyph_equality_ignores_name():
    assert Glyph.from_dm(HEX_A, "a") == Glyph.from_dm(HEX_A, "z")
    assert Glyph.from_dm(HEX_A, "a") != Glyph.from_dm(HEX_B, "a")


def test_glyph_rejects_bad_data_size():
    with pytest.raises(ValueError):
        Glyph(4, 4, 0, "x", bytearray(5))


def test_read_dm_text_skips_bad_lines_and_sorts():
    d = Dictionary()
    d.read_dm_text(_dm_text())
    assert len(d) == 3
    keys = [(-w.height, -w.width, w.bit_count) for w in d]
    assert keys == sorted(keys)
    assert {w.name for w in d} == {"a", "b", "c"}


def test_add_word_duplicate_only_renames():
    d = Dictionary()
    d.add_word(Glyph.from_dm(HEX_A, "a"))
    d.add_word(Glyph.from_dm(HEX_A, "q"))
    assert len(d) == 1
    assert d.words[0].name == "q"


def test_write_read_round_trip(tmp_path):
    d = Dictionary()
    d.read_dm_text(_dm_text())
    path = tmp_path / "words.dict"
    d.write(path)
    loaded = Dictionary()
    loaded.read(path)
    assert loaded.words == d.words
    assert [w.name for w in loaded] == [w.name for w in d]


def test_write_header_and_drops_unnamed(tmp_path):
    d = Dictionary()
    d.add_word(Glyph.from_dm(HEX_A, "a"))
    d.add_word(Glyph.from_dm(HEX_B, ""))
    path = tmp_path / "words.dict"
    d.write(path)
    content = path.read_bytes()
    assert content[:8] == struct.pack("<hhi", 1, 1, 1 ^ 1)
    assert len(d) == 1


def test_read_txt_path_uses_dm_format(tmp_path):
    path = tmp_path / "words.txt"
    path.write_text(_dm_text(), encoding="utf-8")
    from_file = Dictionary()
    from_file.read(path)
    from_text = Dictionary()
    from_text.read_dm_text(_dm_text())
    assert from_file.words == from_text.words


def test_bad_header_gives_empty(tmp_path):
    path = tmp_path / "bad.dict"
    path.write_bytes(struct.pack("<hhi", 1, 3, 0))
    d = Dictionary()
    d.add_word(Glyph.from_dm(HEX_A, "a"))
    d.read(path)
    assert len(d) == 0


def test_read_legacy_format(tmp_path):
    clines = [0] * 32
    clines[0] = 1 << 31
    clines[1] = 1 << 29
    name = "abcd".encode("utf-16-le")
    record = struct.pack("<8shhi32I", name, 2, 3, 2, *clines)
    path = tmp_path / "old.dict"
    path.write_bytes(struct.pack("<hhi", 0, 1, 0 ^ 1) + record)
    d = Dictionary()
    d.read(path)
    assert len(d) == 1
    glyph = d.words[0]
    assert (glyph.width, glyph.height, glyph.bit_count) == (2, 3, 2)
    assert glyph.name == "abc"
    assert get_bit(glyph.data[0], 0) == 1
    assert get_bit(glyph.data[0], 5) == 1
    assert sum(bit_count(b) for b in glyph.data) == 2


def test_add_region_counts_bits_and_dedupes():
    binary = BinaryImage()
    binary.create(5, 4)
    binary.set(1, 1, 1)
    binary.set(2, 2, 1)
    binary.set(3, 2, 1)
    d = Dictionary()
    glyph = d.add_region(binary, (1, 1, 4, 4))
    assert (glyph.width, glyph.height) == (3, 3)
    assert glyph.bit_count == sum(binary)
    assert glyph.name == ""
    again = d.add_region(binary, (1, 1, 4, 4))
    assert again is glyph
    assert len(d) == 1


def test_find_erase_clear():
    d = Dictionary()
    d.read_dm_text(_dm_text())
    target = Glyph.from_dm(HEX_B, "")
    assert d.find(target).name == "b"
    assert d.erase(target) is True
    assert d.find(target) is None
    assert d.erase(target) is False
    d.clear()
    assert len(d) == 0


def test_read_missing_binary_raises(tmp_path):
    with pytest.raises(OSError):
        Dictionary().read(tmp_path / "missing.dict")