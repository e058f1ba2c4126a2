"""Tests for MemoryFile stream semantics and the read-only MemoryFileView."""

import io
import os

import pytest

from foldyfs import EndOfStream, File, MemoryFile, MemoryFileView


class TestMemoryFileReadWrite:
    """Test cursor-based reads and writes."""

    def test_write_then_read_roundtrip(self):
        """Test that bytes written at offset 0 read back unchanged after seeking home."""
        f = MemoryFile()
        payload = b"\x00\x01hello\xffworld"

        assert f.write(payload) == len(payload)
        f.seek(0)

        assert f.read(len(payload)) == payload

    def test_write_advances_position(self):
        """Test that each write moves the cursor by the bytes written."""
        f = MemoryFile()

        f.write(b"abc")
        assert f.position() == 3
        f.write(b"de")
        assert f.position() == 5
        assert f.tell() == 5

    def test_read_past_end_returns_empty(self):
        """Test that reading at end of data is a short read, not an error."""
        f = MemoryFile(b"abc")
        f.seek(3)

        assert f.read(10) == b""
        assert f.position() == 3

    def test_readinto_past_end_returns_zero(self):
        """Test that readinto at end of data copies nothing and returns 0."""
        f = MemoryFile(b"abc")
        f.read()
        buf = bytearray(8)

        assert f.readinto(buf) == 0
        assert f.position() == 3
        assert buf == bytearray(8)

    def test_partial_read_at_end(self):
        """Test that a read straddling the end returns only the remaining bytes."""
        f = MemoryFile(b"abcdef")
        f.seek(4)
        buf = bytearray(10)

        count = f.readinto(buf)

        assert count == 2
        assert bytes(buf[:2]) == b"ef"
        assert f.position() == 6

    def test_read_default_reads_to_end(self):
        """Test that read() with no size returns everything after the cursor."""
        f = MemoryFile(b"hello world")
        f.seek(6)

        assert f.read() == b"world"

    def test_overwrite_in_middle_keeps_length(self):
        """Test that overwriting inside the data does not grow the buffer."""
        f = MemoryFile(b"abcdef")
        f.seek(2)

        f.write(b"XY")

        assert f.getvalue() == b"abXYef"
        assert len(f) == 6

    def test_write_rejects_str(self):
        """Test that writing text instead of bytes raises TypeError."""
        f = MemoryFile()

        with pytest.raises(TypeError):
            f.write("text")  # type: ignore[arg-type]

    def test_write_accepts_memoryview_and_bytearray(self):
        """Test that any bytes-like object can be written."""
        f = MemoryFile()

        f.write(bytearray(b"ab"))
        f.write(memoryview(b"cd"))

        f.seek(0)
        assert f.read(4) == b"abcd"

    def test_satisfies_file_protocol(self):
        """Test that MemoryFile implements the File protocol."""
        assert isinstance(MemoryFile(), File)


class TestMemoryFileGrowth:
    """Test the buffer growth policy."""

    def test_fresh_write_grows_to_requested_size(self):
        """Test that a first write into an empty buffer grows to exactly the request."""
        f = MemoryFile()

        f.write(b"0123456789")

        assert len(f.data) == 10

    def test_write_past_end_doubles(self):
        """Test that one more byte at offset 10 grows to max(11, 10 * 2)."""
        f = MemoryFile()
        f.write(b"0123456789")

        f.write(b"x")

        assert len(f.data) == max(11, 10 * 2)
        assert f.data[10:11] == b"x"
        assert f.data[11:] == bytes(9)
        assert f.position() == 11

    def test_small_appends_amortize(self):
        """Test that repeated one-byte appends double the buffer."""
        f = MemoryFile()
        lengths = []
        for _ in range(5):
            f.write(b"a")
            lengths.append(len(f.data))

        assert lengths == [1, 2, 4, 4, 8]
        assert f.position() == 5

    def test_large_write_uses_requested_size(self):
        """Test that the request wins when it exceeds double the length."""
        f = MemoryFile(b"ab")
        f.seek(2)

        f.write(b"x" * 100)

        assert len(f.data) == 102

    def test_seek_past_end_zero_fills(self):
        """Test that seeking past the end extends the data with zeros."""
        f = MemoryFile(b"abc")

        assert f.seek(8) == 8

        assert len(f) == 8
        assert f.position() == 8
        assert f.getvalue() == b"abc" + bytes(5)

    def test_seek_on_empty_extends_to_position(self):
        """Test that seeking in an empty file extends it to the target."""
        f = MemoryFile()

        f.seek(5)

        assert len(f) == 5
        assert f.position() == 5

    def test_write_after_seek_extension_needs_no_growth(self):
        """Test that writing into space made by a seek does not grow again."""
        f = MemoryFile()
        f.seek(4)
        f.seek(0)

        f.write(b"abcd")

        assert len(f) == 4
        assert f.getvalue() == b"abcd"

    def test_seek_within_data_does_not_grow(self):
        """Test that seeking inside the data leaves the length alone."""
        f = MemoryFile(b"abcdef")

        f.seek(3)

        assert len(f) == 6


class TestMemoryFileSeek:
    """Test relative seeks and invalid seek arguments."""

    def test_seek_from_current(self):
        """Test that SEEK_CUR moves relative to the cursor."""
        f = MemoryFile(b"abcdef")
        f.seek(2)

        assert f.seek(2, os.SEEK_CUR) == 4
        assert f.read(1) == b"e"

    def test_seek_from_end(self):
        """Test that SEEK_END moves relative to the data length."""
        f = MemoryFile(b"abcdefghij")

        assert f.seek(-3, os.SEEK_END) == 7
        assert f.read() == b"hij"

    def test_negative_relative_seek_clamps_to_zero(self):
        """Test that relative seeks before the start stop at zero."""
        f = MemoryFile(b"abcdef")
        f.seek(2)

        assert f.seek(-10, os.SEEK_CUR) == 0
        assert f.seek(-100, os.SEEK_END) == 0
        assert f.position() == 0

    def test_negative_absolute_seek_raises(self):
        """Test that a negative absolute position raises ValueError."""
        f = MemoryFile(b"abc")

        with pytest.raises(ValueError):
            f.seek(-1)

    def test_invalid_whence_raises(self):
        """Test that an unknown whence value raises ValueError."""
        f = MemoryFile(b"abc")

        with pytest.raises(ValueError):
            f.seek(0, 7)


class TestMemoryFileExtras:
    """Test read_exact, truncate and positional reads."""

    def test_read_exact(self):
        """Test that read_exact returns the requested bytes and advances."""
        f = MemoryFile(b"abcdef")

        assert f.read_exact(4) == b"abcd"
        assert f.position() == 4

    def test_read_exact_short_raises_end_of_stream(self):
        """Test that read_exact signals exhaustion and leaves the cursor in place."""
        f = MemoryFile(b"abc")
        f.seek(1)

        with pytest.raises(EndOfStream) as exc_info:
            f.read_exact(5)

        assert exc_info.value.wanted == 5
        assert exc_info.value.available == 2
        assert f.position() == 1

    def test_truncate_clamps_cursor(self):
        """Test that truncating below the cursor pulls the cursor back."""
        f = MemoryFile(b"abcdef")
        f.seek(5)

        assert f.truncate(3) == 3

        assert f.getvalue() == b"abc"
        assert f.position() == 3

    def test_truncate_defaults_to_cursor(self):
        """Test that truncate() with no size cuts at the cursor."""
        f = MemoryFile(b"abcdef")
        f.seek(2)

        f.truncate()

        assert f.getvalue() == b"ab"

    def test_truncate_larger_is_noop(self):
        """Test that truncating to a larger size leaves data unchanged."""
        f = MemoryFile(b"abc")

        assert f.truncate(10) == 3
        assert f.getvalue() == b"abc"

    def test_read_at_leaves_cursor(self):
        """Test that positional reads do not move the cursor."""
        f = MemoryFile(b"abcdef")
        f.seek(1)

        assert f.read_at(3, 2) == b"de"
        assert f.read_at(4) == b"ef"
        assert f.position() == 1


class TestMemoryFileClose:
    """Test closing and context-manager use."""

    def test_context_manager_closes(self):
        """Test that leaving a with block closes the file."""
        with MemoryFile() as f:
            f.write(b"x")
            assert not f.closed

        assert f.closed
        assert f.getvalue() == b"x"

    def test_cursor_operations_fail_after_close(self):
        """Test that reads, writes, seeks and position raise once closed."""
        f = MemoryFile(b"abc")
        f.close()

        with pytest.raises(ValueError, match="closed file"):
            f.write(b"y")
        with pytest.raises(ValueError, match="closed file"):
            f.read()
        with pytest.raises(ValueError, match="closed file"):
            f.readinto(bytearray(1))
        with pytest.raises(ValueError, match="closed file"):
            f.seek(0)
        with pytest.raises(ValueError, match="closed file"):
            f.truncate(0)
        with pytest.raises(ValueError, match="closed file"):
            f.position()
        assert f.getvalue() == b"abc"

    def test_close_is_idempotent(self):
        """Test that closing twice is harmless."""
        f = MemoryFile()

        f.close()
        f.close()

        assert f.closed


class TestMemoryFileView:
    """Test the read-only view returned for shared reads."""

    def test_views_have_independent_cursors(self):
        """Test that each view keeps its own cursor."""
        f = MemoryFile(b"abcdef")
        first = MemoryFileView(f)
        second = MemoryFileView(f)

        assert first.read(2) == b"ab"
        assert second.read(3) == b"abc"
        assert first.read(2) == b"cd"
        assert f.position() == 0

    def test_view_write_unsupported(self):
        """Test that a view refuses writes and truncation."""
        view = MemoryFileView(MemoryFile(b"abc"))

        with pytest.raises(io.UnsupportedOperation):
            view.write(b"x")
        with pytest.raises(io.UnsupportedOperation):
            view.truncate(0)

    def test_view_seek_past_end_stops_at_end(self):
        """Test that a view never extends the data when seeking."""
        f = MemoryFile(b"abc")
        view = MemoryFileView(f)

        assert view.seek(10) == 3
        assert view.read() == b""
        assert len(f) == 3

    def test_view_readinto_and_read_exact(self):
        """Test readinto and read_exact through a view."""
        view = MemoryFileView(MemoryFile(b"abcdef"))
        buf = bytearray(4)

        assert view.readinto(buf) == 4
        assert buf == bytearray(b"abcd")
        assert view.read_exact(2) == b"ef"
        with pytest.raises(EndOfStream):
            view.read_exact(1)

    def test_view_sees_later_writes(self):
        """Test that a view reads data written after it was created."""
        f = MemoryFile()
        view = MemoryFileView(f)

        f.write(b"late")

        assert view.read() == b"late"

    def test_closed_view_rejects_reads(self):
        """Test that a closed view raises on further reads."""
        with MemoryFileView(MemoryFile(b"abc")) as view:
            assert view.read(1) == b"a"

        assert view.closed
        with pytest.raises(ValueError, match="closed file"):
            view.read()

    def test_view_satisfies_file_protocol(self):
        """Test that MemoryFileView implements the File protocol."""
        assert isinstance(MemoryFileView(MemoryFile()), File)
