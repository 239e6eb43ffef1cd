"""Unit tests for log line decoding."""

from bothost.logs import LogLineDecoder, decode_line, strip_timestamp


def frame(payload: bytes, stream_type: int = 1) -> bytes:
    """Build an engine log frame: 8-byte header followed by the payload."""
    return bytes([stream_type, 0, 0, 0]) + len(payload).to_bytes(4, "big") + payload


class TestStripTimestamp:
    """Tests for strip_timestamp."""

    def test_nanosecond_timestamp(self) -> None:
        assert strip_timestamp("2024-01-28T09:25:06.977069875Z hello") == "hello"

    def test_whole_second_timestamp(self) -> None:
        assert strip_timestamp("2024-01-28T09:25:06Z  ready") == "ready"

    def test_no_timestamp(self) -> None:
        assert strip_timestamp("plain line") == "plain line"

    def test_only_leading_timestamp_removed(self) -> None:
        """A timestamp later in the line is content."""
        text = "at 2024-01-28T09:25:06Z something"
        assert strip_timestamp(text) == text


class TestDecodeLine:
    """Tests for decode_line."""

    def test_header_and_timestamp(self) -> None:
        """The frame header and timestamp are stripped."""
        raw = frame(b"2024-01-28T09:25:06.977069875Z hello")
        assert decode_line(raw) == "hello"

    def test_blank_after_stripping(self) -> None:
        assert decode_line(frame(b"2024-01-28T09:25:06Z   ")) is None
        assert decode_line(b"") is None

    def test_carriage_return(self) -> None:
        assert decode_line(b"windows line\r") == "windows line"

    def test_invalid_utf8_replaced(self) -> None:
        assert decode_line(b"bad \xff byte") == "bad \ufffd byte"


class TestLogLineDecoder:
    """Tests for the incremental decoder."""

    def test_single_framed_line(self) -> None:
        """A framed, timestamped line yields exactly one decoded line."""
        decoder = LogLineDecoder()
        lines = decoder.feed(frame(b"2024-01-28T09:25:06.977069875Z hello\n"))
        assert lines == ["hello"]
        assert decoder.flush() == []

    def test_multiple_frames_in_one_chunk(self) -> None:
        """Lines come out in stream order across stdout and stderr frames."""
        chunk = frame(b"first\n") + frame(b"second\n", stream_type=2) + frame(b"third\n")
        assert LogLineDecoder().feed(chunk) == ["first", "second", "third"]

    def test_frame_split_across_chunks(self) -> None:
        """A frame cut in the middle of its header or payload is reassembled."""
        data = frame(b"split line\n")
        decoder = LogLineDecoder()
        assert decoder.feed(data[:3]) == []
        assert decoder.feed(data[3:10]) == []
        assert decoder.feed(data[10:]) == ["split line"]

    def test_line_split_across_frames(self) -> None:
        """A line spanning two frames is emitted once complete."""
        decoder = LogLineDecoder()
        assert decoder.feed(frame(b"hel")) == []
        assert decoder.feed(frame(b"lo\nworld")) == ["hello"]
        assert decoder.flush() == ["world"]

    def test_blank_lines_suppressed(self) -> None:
        decoder = LogLineDecoder()
        assert decoder.feed(frame(b"\n\nvisible\n   \n")) == ["visible"]

    def test_demultiplexed_passthrough(self) -> None:
        """Plain text without frame headers passes through unchanged."""
        decoder = LogLineDecoder()
        assert decoder.feed(b"2024-01-28T09:25:06Z plain\nsecond\n") == ["plain", "second"]

    def test_flush_partial_frame(self) -> None:
        """Flushing drops a dangling header and keeps the partial payload."""
        decoder = LogLineDecoder()
        truncated = frame(b"cut off at the end\n")[:15]
        assert decoder.feed(truncated) == []
        assert decoder.flush() == ["cut off"]
