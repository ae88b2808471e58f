"""In-process registry double built on ``httpx.MockTransport``."""

import asyncio
import inspect
from typing import Any, Callable, Dict, List, Union

import httpx

Route = Union[httpx.Response, Callable[[httpx.Request], Any], dict, list]


def service_index(search="https://api.example.org/query", registration="https://api.example.org/registration/",
                  flat="https://api.example.org/flat/"):
    resources = []
    if search:
        resources.append({"@id": search, "@type": "SearchQueryService/3.5.0"})
    if registration:
        resources.append({"@id": registration, "@type": "RegistrationsBaseUrl/3.6.0"})
    if flat:
        resources.append({"@id": flat, "@type": "PackageBaseAddress/3.0.0"})
    return {"version": "3.0.0", "resources": resources}


class FakeRegistry:
    """Routes requests by URL (query string ignored) to canned responses.

    A route may be a JSON-able dict/list, an ``httpx.Response``, or a
    (sync or async) callable taking the request.
    """

    def __init__(self):
        self.routes: Dict[str, Route] = {}
        self.requests: List[httpx.Request] = []

    def add(self, url: str, route: Route) -> None:
        self.routes[url] = route

    def calls(self, url: str) -> int:
        return sum(1 for request in self.requests if str(request.url).split("?")[0] == url)

    def last_request(self, url: str) -> httpx.Request:
        matching = [request for request in self.requests if str(request.url).split("?")[0] == url]
        assert matching, f"no request to {url}"
        return matching[-1]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url).split("?")[0])
        if route is None:
            return httpx.Response(404, text="Not Found")
        if callable(route):
            route = route(request)
            if inspect.isawaitable(route):
                route = await route
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle))


def slow(route: Route, delay: float = 5.0):
    async def _handler(request: httpx.Request):
        await asyncio.sleep(delay)
        return route
    return _handler
