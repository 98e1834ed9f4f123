from dataclasses import dataclass

import pytest

from httpwire import SyntheticResponse


def ended(chunk: object) -> bytes:
	return SyntheticResponse().end(chunk).body


def test_chunk_coercion():
	assert ended({"foo": "bar"}) == b'{"foo":"bar"}'
	assert ended("foo") == b"foo"
	assert ended(b"\x00\xffraw") == b"\x00\xffraw"
	assert ended(bytearray(b"ab")) == b"ab"
	assert ended(None) == b""


@pytest.mark.parametrize(
	"chunk, expected",
	[
		(42, b"42"),
		(1.5, b"1.5"),
		(True, b"true"),
		(False, b"false"),
		(0, b"0"),
		([1, "a"], b'[1,"a"]'),
		("été", "été".encode("utf8")),
	],
)
def test_non_binary_values_are_serialized(chunk, expected):
	assert ended(chunk) == expected


def test_unserializable_values_yield_no_bytes():
	assert ended(object()) == b""
	cycle: list[object] = []
	cycle.append(cycle)
	assert ended(cycle) == b""


def test_dataclasses_are_serialized():
	@dataclass
	class Point:
		x: int
		y: int

	assert ended(Point(1, 2)) == b'{"x":1,"y":2}'


def test_status_and_status_code_are_aliases():
	response = SyntheticResponse()
	assert response.statusCode == 200
	assert response.status(201) is response
	assert response.statusCode == 201
	response.statusCode = 418
	assert response.statusCode == 418
	assert response.statusMessage == "I'm a Teapot"


def test_headers_ignore_case():
	response = SyntheticResponse()
	response.setHeader("X-Foo", "a")
	assert response.getHeader("x-foo") == "a"
	assert response.hasHeader("X-FOO")
	response.setHeader("x-foo", "b")
	assert response.getHeader("X-Foo") == "b"
	assert response.removeHeader("X-Foo").getHeader("x-foo") is None


def test_raw_headers():
	response = SyntheticResponse()
	response.setHeader("Content-Type", "application/json")
	response.setHeader("X-Count", 1)
	assert response.rawHeaders == ["Content-Type", "application/json", "X-Count", "1"]
	response.setHeader("content-type", "text/plain")
	assert response.rawHeaders == ["content-type", "text/plain", "X-Count", "1"]


def test_end_completes_once():
	completed: list[bool] = []
	response = SyntheticResponse(onEnd=lambda: completed.append(True))
	response.write("a")
	response.write({"b": 1})
	assert not response.finished
	assert not completed
	response.end("c")
	response.end("d")
	assert response.finished
	assert completed == [True]
	assert response.body == b'a{"b":1}c'


def test_body_can_be_consumed_as_a_stream():
	response = SyntheticResponse().end("streamed")
	chunks: list[bytes] = []
	ended: list[bool] = []
	response.on("data", chunks.append).once("end", lambda: ended.append(True))
	assert chunks == [b"streamed"]
	assert ended == [True]
	assert response.removeAllListeners() is response


def test_text_and_json():
	assert SyntheticResponse().end({"a": [1]}).json() == {"a": [1]}
	assert SyntheticResponse().end("été").text() == "été"
	assert SyntheticResponse().end().json() is None


def test_head():
	response = SyntheticResponse().status(404).setHeader("x-foo", "bar").end("nope")
	assert response.head() == (
		b"HTTP/1.1 404 Not Found\r\nX-Foo: bar\r\nContent-Length: 4\r\n\r\n"
	)


def test_head_frames_the_body_by_its_length():
	response = (
		SyntheticResponse()
		.setHeader("Transfer-Encoding", "chunked")
		.setHeader("Content-Length", "100")
		.setHeader("X-Foo", "bar")
		.end("hello")
	)
	assert response.head() == (
		b"HTTP/1.1 200 OK\r\nX-Foo: bar\r\nContent-Length: 5\r\n\r\n"
	)
	assert response.headerPairs() == [("X-Foo", "bar")]


# EOF
