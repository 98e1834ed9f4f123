import re
from typing import Any, Callable, Iterator

import pytest

from httpwire import SyntheticRequest, SyntheticResponse, unwire
from httpwire.scheduler import Scheduler


@pytest.fixture(autouse=True)
def unwired() -> Iterator[None]:
	"""Makes sure no test leaves outgoing calls wired."""
	yield
	unwire()
	Scheduler.Stop()


class Router:
	"""A tiny routing layer, standing for the one a web framework would put
	in front of handlers: `{name}` segments end up in `request.params`."""

	def __init__(self) -> None:
		self.routes: list[tuple[str, re.Pattern[str], Callable[..., Any]]] = []

	def route(self, method: str, path: str, handler: Callable[..., Any]) -> "Router":
		regexp = re.compile(re.sub(r"\{(\w+)\}", r"(?P<\1>[^/]+)", path))
		self.routes.append((method, regexp, handler))
		return self

	def get(self, path: str, handler: Callable[..., Any]) -> "Router":
		return self.route("GET", path, handler)

	def post(self, path: str, handler: Callable[..., Any]) -> "Router":
		return self.route("POST", path, handler)

	def __call__(self, request: SyntheticRequest, response: SyntheticResponse) -> Any:
		for method, regexp, handler in self.routes:
			if method == request.method and (match := regexp.fullmatch(request.path)):
				request.params.update(match.groupdict())
				return handler(request, response)
		return response.status(404).end("Not Found")


@pytest.fixture
def router() -> Router:
	return Router()


# EOF
