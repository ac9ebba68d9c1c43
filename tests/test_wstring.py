"""Tests de la conversion de chaînes larges UTF-16."""

from __future__ import annotations

import ctypes

from unisbom.win32.wstring import from_wide, to_wide, to_wide_buffer, utf16_length


# ---------------------------------------------------------------------------
# Encodage
# ---------------------------------------------------------------------------


class TestToWide:
    """Encodage UTF-8 vers unités UTF-16 terminées par un zéro."""

    def test_ascii(self) -> None:
        assert to_wide("A") == [0x41, 0]

    def test_empty_string_is_single_terminator(self) -> None:
        assert to_wide("") == [0]

    def test_two_byte_sequence(self) -> None:
        assert to_wide("é") == [0xE9, 0]

    def test_three_byte_sequence(self) -> None:
        assert to_wide("€") == [0x20AC, 0]

    def test_astral_code_point_becomes_surrogate_pair(self) -> None:
        assert to_wide("\U0001F600") == [0xD83D, 0xDE00, 0]

    def test_windows_path(self) -> None:
        units = to_wide("C:\\Windows")
        assert units[:-1] == [ord(c) for c in "C:\\Windows"]
        assert units[-1] == 0


class TestUtf16Length:
    """Dimensionnement du tampon."""

    def test_counts_surrogate_pairs_twice(self) -> None:
        assert utf16_length("a\U0001F600") == 3

    def test_empty(self) -> None:
        assert utf16_length("") == 0


class TestToWideBuffer:
    """Tableau ctypes passé aux API natives."""

    def test_buffer_is_terminated(self) -> None:
        buffer = to_wide_buffer("abc")
        assert len(buffer) == 4
        assert list(buffer) == [0x61, 0x62, 0x63, 0]
        assert ctypes.sizeof(buffer) == 8


# ---------------------------------------------------------------------------
# Décodage
# ---------------------------------------------------------------------------


class TestFromWide:
    """Décodage tolérant des tampons UTF-16."""

    def test_bytes_with_trailing_nuls(self) -> None:
        assert from_wide(b"h\x00i\x00\x00\x00\x00\x00") == "hi"

    def test_unit_sequence(self) -> None:
        assert from_wide([0x68, 0x69, 0, 0]) == "hi"

    def test_ctypes_array(self) -> None:
        assert from_wide(to_wide_buffer("pilote")) == "pilote"

    def test_native_wide_char_buffer(self) -> None:
        assert from_wide(ctypes.create_unicode_buffer("pilote", 16)) == "pilote"

    def test_native_wide_char_buffer_keeps_inner_nul(self) -> None:
        buffer = ctypes.create_unicode_buffer(8)
        buffer[0], buffer[2] = "a", "b"
        assert from_wide(buffer) == "a\x00b"

    def test_odd_trailing_byte_is_dropped(self) -> None:
        assert from_wide(b"h\x00i") == "h"

    def test_lone_surrogate_is_replaced(self) -> None:
        assert from_wide([0xD800, 0x41]) == "\ufffdA"

    def test_surrogate_pair(self) -> None:
        assert from_wide([0xD83D, 0xDE00, 0]) == "\U0001F600"

    def test_empty(self) -> None:
        assert from_wide(b"") == ""
