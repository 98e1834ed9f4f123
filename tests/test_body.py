import pytest

from httpwire import BodyStream, CallStateError


def test_chunks_are_read_in_order():
	body = BodyStream()
	body.write(b"foo")
	body.write("bar")
	assert body.read() == b"foobar"
	body.write(b"baz")
	assert body.read(1) == b"b"
	assert body.read() == b"az"
	assert body.read() == b""
	assert body.payload == b"foobarbaz"


def test_string_chunks_use_the_given_encoding():
	body = BodyStream()
	body.write("é", "latin1")
	body.end("é")
	assert body.payload == b"\xe9\xc3\xa9"


def test_writing_after_end_fails():
	body = BodyStream().end(b"done")
	assert body.isEnded
	with pytest.raises(CallStateError):
		body.write(b"more")


def test_data_and_end_events():
	body = BodyStream()
	chunks: list[bytes] = []
	ended: list[bool] = []
	body.write(b"a")
	body.on("data", chunks.append)
	body.on("end", lambda: ended.append(True))
	assert chunks == [b"a"]
	body.write(b"b")
	assert chunks == [b"a", b"b"]
	assert not ended
	body.end()
	assert ended == [True]


def test_listening_after_end_still_gets_everything():
	body = BodyStream().end(b"all")
	chunks: list[bytes] = []
	ended: list[bool] = []
	body.on("data", chunks.append).on("end", lambda: ended.append(True))
	assert chunks == [b"all"]
	assert ended == [True]


def test_once_and_remove_all_listeners():
	body = BodyStream()
	seen: list[bytes] = []
	body.once("data", seen.append)
	body.write(b"a")
	body.write(b"b")
	assert seen == [b"a"]
	body.on("end", lambda: seen.append(b"end"))
	body.removeAllListeners()
	body.write(b"c")
	body.end()
	assert seen == [b"a"]
	assert body.read() == b"bc"


def test_iteration():
	body = BodyStream()
	body.write(b"abc")
	assert list(body) == [b"abc"]
	assert list(body) == []
	assert body.readable()
	body.end()
	assert not body.readable()


# EOF
