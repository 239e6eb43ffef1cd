"""Decoding of container log output into display lines.

Raw engine output for non-TTY containers is framed: every frame starts with
an 8-byte header (stream type, three zero bytes, big-endian payload size).
The decoder strips those headers when present, splits the payload on line
boundaries, removes an engine timestamp prefix and drops blank lines.
Output that arrives already demultiplexed passes through unchanged.
"""

import re

HEADER_SIZE = 8

_STREAM_TYPES = (0, 1, 2)
_TIMESTAMP_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z\s*")


def _has_frame_header(data: bytes) -> bool:
    return len(data) >= 4 and data[0] in _STREAM_TYPES and data[1:4] == b"\x00\x00\x00"


def strip_timestamp(text: str) -> str:
    """Remove a leading ``YYYY-MM-DDTHH:MM:SS[.fraction]Z`` prefix and its whitespace."""
    return _TIMESTAMP_PREFIX.sub("", text, count=1)


def decode_line(raw: bytes) -> str | None:
    """Decode one raw line. Returns None when nothing visible remains."""
    if _has_frame_header(raw) and len(raw) >= HEADER_SIZE:
        raw = raw[HEADER_SIZE:]
    text = strip_timestamp(raw.decode("utf-8", errors="replace").rstrip("\r"))
    if not text.strip():
        return None
    return text


class LogLineDecoder:
    """Incremental decoder turning raw chunks into lines in stream order.

    A line split across chunks is held back until its newline arrives, and a
    frame split across chunks is held back until its payload is complete.

    Example:
        decoder = LogLineDecoder()
        for chunk in chunks:
            for line in decoder.feed(chunk):
                print(line)
        for line in decoder.flush():
            print(line)
    """

    def __init__(self) -> None:
        self._frames = b""
        self._text = b""

    def feed(self, chunk: bytes) -> list[str]:
        """Consume a raw chunk and return the complete lines it finished."""
        self._frames += chunk
        self._text += self._take_payload()
        *complete, self._text = self._text.split(b"\n")
        return [line for line in map(decode_line, complete) if line is not None]

    def flush(self) -> list[str]:
        """Return whatever is left once the stream has ended."""
        remainder = self._frames
        if _has_frame_header(remainder) and len(remainder) >= HEADER_SIZE:
            remainder = remainder[HEADER_SIZE:]
        data = self._text + remainder
        self._frames = b""
        self._text = b""
        return [line for line in map(decode_line, data.split(b"\n")) if line is not None]

    def _take_payload(self) -> bytes:
        payload = bytearray()
        buffer = self._frames
        while buffer:
            if not _has_frame_header(buffer):
                if len(buffer) < 4 and not buffer.strip(b"\x00\x01\x02"):
                    # possibly a header cut short, wait for more bytes
                    break
                payload += buffer
                buffer = b""
                break
            if len(buffer) < HEADER_SIZE:
                break
            size = int.from_bytes(buffer[4:HEADER_SIZE], "big")
            if len(buffer) < HEADER_SIZE + size:
                break
            payload += buffer[HEADER_SIZE : HEADER_SIZE + size]
            buffer = buffer[HEADER_SIZE + size :]
        self._frames = buffer
        return bytes(payload)
