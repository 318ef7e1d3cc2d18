"""Tests for SSE wire framing."""

from core.framer import coerce_payload, encode_block, encode_comment, encode_retry


class TestEncodeBlock:

    def test_single_line(self):
        assert encode_block(1, "A", "hello") == "id: 1\nevent: A\ndata: hello\n\n"

    def test_multiline_payload_gets_one_data_line_each(self):
        assert encode_block(2, "A", "line1\nline2") == (
            "id: 2\nevent: A\ndata: line1\ndata: line2\n\n"
        )

    def test_crlf_and_cr_are_line_breaks(self):
        frame = encode_block(3, "A", "a\r\nb\rc")
        assert frame == "id: 3\nevent: A\ndata: a\ndata: b\ndata: c\n\n"

    def test_trailing_newline_keeps_empty_data_line(self):
        assert encode_block(4, "A", "x\n") == "id: 4\nevent: A\ndata: x\ndata: \n\n"

    def test_event_line_omitted_without_name(self):
        assert encode_block(5, "", "x") == "id: 5\ndata: x\n\n"
        assert encode_block(5, None, "x") == "id: 5\ndata: x\n\n"

    def test_structured_payload_is_json(self):
        assert encode_block(6, "A", {"n": 1}) == 'id: 6\nevent: A\ndata: {"n": 1}\n\n'


class TestCoercePayload:

    def test_values(self):
        assert coerce_payload(None) == ""
        assert coerce_payload("s") == "s"
        assert coerce_payload(b"bytes") == "bytes"
        assert coerce_payload([1, 2]) == "[1, 2]"
        assert coerce_payload(7) == "7"


class TestControlFrames:

    def test_comment_with_token(self):
        assert encode_comment("abc") == ": abc\n\n"

    def test_comment_random_token(self):
        first, second = encode_comment(), encode_comment()
        assert first.startswith(": ") and first.endswith("\n\n")
        assert first != second
        for field in ("id:", "event:", "data:"):
            assert field not in first

    def test_retry(self):
        assert encode_retry(1000) == "retry: 1000\n"
        assert encode_retry(2500.0) == "retry: 2500\n"
