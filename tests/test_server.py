import http.client

from httpwire import serve


def fetch(port: int, method: str = "GET", path: str = "/") -> http.client.HTTPResponse:
	cxn = http.client.HTTPConnection("127.0.0.1", port)
	cxn.request(method, path)
	return cxn.getresponse()


def test_serves_the_handler():
	def handler(request, response):
		response.setHeader("X-Method", request.method).end(f"{request.url}")

	with serve(handler) as server:
		assert server.url == f"http://127.0.0.1:{server.port}"
		res = fetch(server.port, path="/path?q=1")
		assert res.status == 200
		assert res.getheader("X-Method") == "GET"
		assert res.read() == f"{server.url}/path?q=1".encode()
		res = fetch(server.port, "HEAD")
		assert res.status == 200
		assert res.read() == b""


def test_handler_failures_are_internal_errors():
	def handler(request, response):
		raise RuntimeError("boom")

	with serve(handler) as server:
		res = fetch(server.port)
		assert res.status == 500
		assert res.read() == b"Internal Server Error"


def test_bodies_are_framed_by_their_length():
	def handler(request, response):
		response.setHeader("Transfer-Encoding", "chunked").end("hello")

	with serve(handler) as server:
		res = fetch(server.port)
		assert res.getheader("Content-Length") == "5"
		assert res.read() == b"hello"


# EOF
