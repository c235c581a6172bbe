import pytest

from pixelops.dictionary import Dictionary
from pixelops.image import BinaryImage
from pixelops.ocr import OcrRecord, Recognizer

GLYPH_A = ["XXX", "X..", "XX.", "X.."]
GLYPH_B = ["XXX", "..X", ".XX", "..X"]


def make_plane(width, height, marks):
    plane = BinaryImage()
    plane.create(width, height)
    for x, y in marks:
        plane.set(y, x, 1)
    return plane


def pattern_marks(pattern, x0, y0):
    return {
        (x0 + x, y0 + y)
        for y, row in enumerate(pattern)
        for x, ch in enumerate(row)
        if ch == "X"
    }


def make_dictionary():
    dictionary = Dictionary()
    for name, pattern in (("A", GLYPH_A), ("B", GLYPH_B)):
        plane = make_plane(3, 4, pattern_marks(pattern, 0, 0))
        glyph = dictionary.add_region(plane, (0, 0, 3, 4))
        glyph.set_name(name)
    dictionary.sort()
    return dictionary


def recognizer_with(marks, width=20, height=8):
    rec = Recognizer(workers=1)
    rec.binary = make_plane(width, height, marks)
    return rec


def test_exact_match_finds_glyph_box():
    rec = recognizer_with(pattern_marks(GLYPH_A, 5, 2))
    records = rec.bin_ocr(make_dictionary(), 1.0)
    assert len(records) == 1
    assert records[0].left_top == (5, 2)
    assert records[0].right_bottom == (8, 6)
    assert records[0].text == "A"
    assert records[0].confidence == 1.0


def test_ocr_joins_in_reading_order():
    marks = pattern_marks(GLYPH_A, 1, 1) | pattern_marks(GLYPH_B, 10, 1)
    rec = recognizer_with(marks)
    assert rec.ocr(make_dictionary(), 1.0) == "AB"


def test_ocr_ex_applies_offset():
    marks = pattern_marks(GLYPH_A, 1, 1) | pattern_marks(GLYPH_B, 10, 1)
    rec = recognizer_with(marks)
    rec.set_offset(100, 200)
    assert rec.ocr_ex(make_dictionary(), 1.0) == [(101, 201, "A"), (110, 201, "B")]


def test_fuzzy_match_tolerates_noise():
    marks = pattern_marks(GLYPH_A, 5, 2) - {(6, 4)}
    rec = recognizer_with(marks)
    assert rec.bin_ocr(make_dictionary(), 1.0) == []
    records = rec.bin_ocr(make_dictionary(), 0.8)
    assert [r.text for r in records] == ["A"]
    assert records[0].left_top == (5, 2)
    assert 0.0 < records[0].confidence < 1.0


def test_empty_dictionary_recognises_nothing():
    rec = recognizer_with(pattern_marks(GLYPH_A, 5, 2))
    assert rec.bin_ocr(Dictionary(), 1.0) == []
    assert rec.ocr(Dictionary(), 1.0) == ""


def test_find_str_returns_target_index_and_position():
    marks = pattern_marks(GLYPH_A, 1, 1) | pattern_marks(GLYPH_B, 10, 1)
    rec = recognizer_with(marks)
    records = rec.bin_ocr(make_dictionary(), 1.0)
    assert rec.find_str(records, ["B"]) == (0, 10, 1)
    assert rec.find_str(records, ["Z", "AB"]) == (1, 1, 1)
    assert rec.find_str(records, ["Z"]) is None


def test_find_str_ex_lists_every_occurrence():
    records = [
        OcrRecord((0, 0), (3, 4), "A", 1.0),
        OcrRecord((5, 0), (8, 4), "B", 1.0),
        OcrRecord((9, 0), (12, 4), "A", 1.0),
    ]
    rec = Recognizer(workers=1)
    rec.set_offset(10, 20)
    assert rec.find_str_ex(records, ["A", "B"]) == [(0, 10, 20), (0, 19, 20), (1, 15, 20)]
    assert rec.find_str_ex(records, ["Q"]) == []


def test_bin_image_cut_tightens_to_marks():
    marks = {(x, y) for x in range(4, 7) for y in range(2, 5)}
    rec = recognizer_with(marks, width=10, height=8)
    assert rec.bin_image_cut(0, (0, 0, 10, 8)) == (4, 2, 7, 5)


def test_bin_image_cut_keeps_short_height():
    marks = {(x, 3) for x in range(2, 6)}
    rec = recognizer_with(marks, width=10, height=8)
    x1, y1, x2, y2 = rec.bin_image_cut(5, (0, 0, 10, 8))
    assert (x1, y1, x2) == (2, 3, 6)
    assert y2 == 8


def test_get_rois_splits_separate_blobs():
    marks = {(x, y) for x in range(1, 4) for y in range(1, 4)}
    marks |= {(x, y) for x in range(12, 15) for y in range(1, 4)}
    rec = recognizer_with(marks, width=20, height=6)
    assert rec.get_rois(2) == [(1, 1, 4, 4), (12, 1, 15, 4)]


def test_invalid_worker_count_is_rejected():
    with pytest.raises(ValueError):
        Recognizer(workers=0)