import asyncio
import contextvars

import pytest

from httpwire import (
	CallHandle,
	CallSetupError,
	CallState,
	CallStateError,
	Interceptor,
	SyntheticRequest,
	SyntheticResponse,
	config,
)
from httpwire.interceptor import StalledHandle


def echo(request: SyntheticRequest, response: SyntheticResponse) -> None:
	response.setHeader("Content-Type", request.header("content-type") or "text/plain")
	response.end(request.body.read())


def test_round_trip():
	delivered: list[SyntheticResponse] = []
	handle = Interceptor(echo).intercept(
		"http",
		"http://example.test/echo",
		{"method": "POST", "headers": {"Content-Type": "application/json"}},
		delivered.append,
	)
	assert isinstance(handle, CallHandle)
	handle.write('{"foo":')
	handle.write(b'"bar"}')
	assert not delivered
	handle.end()
	assert handle.state is CallState.Completed
	(response,) = delivered
	assert response.statusCode == 200
	assert response.headers["content-type"] == "application/json"
	assert response.rawHeaders == ["Content-Type", "application/json"]
	assert response.json() == {"foo": "bar"}
	assert handle.wait() is response
	assert handle.getHeader("CONTENT-TYPE") == "application/json"


def test_handler_runs_once_the_body_is_complete():
	seen: list[bytes] = []

	def handler(request, response):
		assert request.body.isEnded
		seen.append(request.body.payload)
		response.end()

	handle = Interceptor(handler).intercept("http", "http://example.test/")
	handle.write(b"a")
	handle.write(b"b")
	assert seen == []
	assert handle.state is CallState.Collecting
	handle.end(b"c")
	handle.end()
	assert seen == [b"abc"]


def test_handler_that_never_ends_never_delivers():
	delivered: list[SyntheticResponse] = []
	invoked: list[bool] = []

	def handler(request, response):
		invoked.append(True)
		response.write("partial")

	handle = Interceptor(handler).intercept(
		"http", "http://example.test/", delivered.append
	)
	handle.end()
	assert invoked == [True]
	assert handle.state is CallState.Dispatched
	assert delivered == []


def test_status_defaults_to_200():
	delivered: list[SyntheticResponse] = []
	Interceptor(lambda req, res: res.end("foo")).intercept(
		"http", "http://example.test/", delivered.append
	).end()
	assert delivered[0].statusCode == 200


def test_concurrent_calls_are_isolated():
	invocations: list[str] = []

	def handler(request, response):
		invocations.append(request.path)
		response.status(201 if request.path == "/a" else 202).end(request.body.read())

	interceptor = Interceptor(handler)
	delivered: dict[str, SyntheticResponse] = {}
	a = interceptor.intercept("http", "http://example.test/a", lambda r: delivered.setdefault("a", r))
	b = interceptor.intercept("http", "http://example.test/b", lambda r: delivered.setdefault("b", r))
	a.write(b"body of a")
	b.write(b"body of b")
	b.end()
	a.end()
	assert sorted(invocations) == ["/a", "/b"]
	assert delivered["a"].body == b"body of a"
	assert delivered["a"].statusCode == 201
	assert delivered["b"].body == b"body of b"
	assert delivered["b"].statusCode == 202


def test_handler_state_is_kept_between_calls():
	count = 0

	def handler(request, response):
		nonlocal count
		count += 1
		response.end(count)

	interceptor = Interceptor(handler)
	results = [
		interceptor.intercept("http", "http://example.test/add").end().wait().json()
		for _ in range(3)
	]
	assert results == [1, 2, 3]


def test_handler_exceptions_propagate():
	def handler(request, response):
		raise KeyError("boom")

	handle = Interceptor(handler).intercept("http", "http://example.test/")
	with pytest.raises(KeyError):
		handle.end()


def test_request_headers_set_on_the_handle():
	seen: dict[str, str | None] = {}

	def handler(request, response):
		seen["x-token"] = request.header("x-token")
		response.setHeader("X-Reply", "yes").end()

	handle = Interceptor(handler).intercept("http", "http://example.test/")
	assert handle.setHeader("X-Token", "secret") is handle
	assert list(handle.request.headers) == ["x-token"]
	assert handle.getHeader("x-reply") is None
	handle.end()
	assert seen == {"x-token": "secret"}
	assert handle.getHeader("X-REPLY") == "yes"


def test_handle_events_and_destroy():
	responses: list[SyntheticResponse] = []
	handle = Interceptor(lambda req, res: res.end("ok")).intercept(
		"http", "http://example.test/"
	)
	handle.on("response", responses.append)
	handle.on("error", lambda e: pytest.fail("no errors expected"))
	assert handle.destroy() is handle
	handle.end()
	assert [_.text() for _ in responses] == ["ok"]
	handle.removeAllListeners()
	assert handle.listenerCount("response") == 0


def test_waiting_before_end_fails():
	handle = Interceptor(echo).intercept("http", "http://example.test/")
	with pytest.raises(CallStateError):
		handle.wait()


def test_setup_failures_stall_the_call():
	delivered: list[SyntheticResponse] = []
	handle = Interceptor(echo).intercept("http", "not a url", delivered.append)
	assert isinstance(handle, StalledHandle)
	assert handle.write(b"ignored")
	handle.end()
	assert handle.getHeader("content-type") is None
	assert delivered == []


def test_setup_failures_raise_when_strict(monkeypatch):
	monkeypatch.setattr(config, "STRICT", True)
	with pytest.raises(CallSetupError) as info:
		Interceptor(echo).intercept("http", 42)
	assert info.value.rawArgs == (42,)
	assert isinstance(info.value.__cause__, TypeError)


def test_async_handlers():
	async def handler(request, response):
		await asyncio.sleep(0.01)
		response.status(202).end({"path": request.path})

	handle = Interceptor(handler).intercept("http", "http://example.test/async")
	handle.end()
	response = handle.wait()
	assert response.statusCode == 202
	assert response.json() == {"path": "/async"}


def test_async_handler_exceptions_are_raised_by_wait():
	async def handler(request, response):
		raise LookupError("async boom")

	handle = Interceptor(handler).intercept("http", "http://example.test/")
	handle.end()
	with pytest.raises(LookupError):
		handle.wait()


Caller: contextvars.ContextVar[str] = contextvars.ContextVar("Caller", default="none")


def test_callback_runs_in_the_callers_context():
	seen: list[str] = []

	async def handler(request, response):
		await asyncio.sleep(0)
		response.end()

	token = Caller.set("test")
	try:
		handle = Interceptor(handler).intercept(
			"http", "http://example.test/", lambda r: seen.append(Caller.get())
		)
	finally:
		Caller.reset(token)
	handle.end()
	handle.wait()
	assert seen == ["test"]


def test_paths_are_kept_as_given():
	seen: list[tuple[str, str]] = []

	def handler(request, response):
		seen.append((request.path, request.url))
		response.end()

	Interceptor(handler).intercept(
		"http", {"host": "example.test", "path": "//a/b"}
	).end()
	assert seen == [("//a/b", "http://example.test//a/b")]


def test_sequential_calls_are_isolated():
	bodies: list[bytes] = []

	def handler(request, response):
		body = request.body.read()
		bodies.append(body)
		response.setHeader(f"X-{request.path[1:]}", "1").end(body.upper())

	interceptor = Interceptor(handler)
	first = interceptor.intercept("http", "http://example.test/first")
	first.write(b"one")
	a = first.end().wait()
	second = interceptor.intercept("http", "http://example.test/second")
	second.write(b"two")
	b = second.end().wait()
	assert bodies == [b"one", b"two"]
	assert a is not b
	assert (a.body, b.body) == (b"ONE", b"TWO")
	assert a.rawHeaders == ["X-first", "1"]
	assert b.rawHeaders == ["X-second", "1"]
	assert second.getHeader("x-first") is None
	assert first.request.body.payload == b"one"
	assert second.request.body.payload == b"two"


# EOF
