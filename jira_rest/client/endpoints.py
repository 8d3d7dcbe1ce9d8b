"""Declarative endpoint descriptors.

An ``Endpoint`` declared in a client class body becomes an async method. The
method's arguments are derived from the declaration:

* ``{placeholders}`` in the path and names listed in ``params`` are positional
  arguments;
* ``query`` lists Jira's camelCase query parameter names, each exposed as a
  snake_case keyword argument defaulting to None (or to ``defaults``);
* ``body`` names the argument sent as the JSON body, or is a callable that
  builds the body from all bound arguments.

For example::

    find_issue = Endpoint("GET", "issue/{issue_number}", query=("expand", "fields"))

gives ``await client.find_issue("PROJ-1", fields=["summary"])``.
"""

import inspect
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Union

from jira_rest.client.dispatch import RequestOptions
from jira_rest.client.urls import ApiFamily, UrlBuilder

if TYPE_CHECKING:
    from jira_rest.client.jira_client import JiraClient

_PLACEHOLDER = re.compile(r"{(\w+)}")
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

BodyBuilder = Callable[[Mapping[str, Any]], Any]


def snake_case(name: str) -> str:
    """Convert a camelCase query parameter name to snake_case."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


@dataclass(eq=False)
class Endpoint:
    """One Jira operation: HTTP verb, path template, query and body shape."""

    method: str
    path: str = ""
    family: ApiFamily = ApiFamily.API
    query: tuple[str, ...] = ()
    body: Union[str, BodyBuilder, None] = None
    params: tuple[str, ...] = ()
    defaults: Mapping[str, Any] = field(default_factory=dict)
    fixed_query: Mapping[str, Any] = field(default_factory=dict)
    extra_query: bool = False
    intermediate_path: Optional[str] = None
    encode: bool = True
    binary: bool = False
    extract: Optional[str] = None
    doc: Optional[str] = None
    name: str = field(default="", init=False)

    def __post_init__(self) -> None:
        self.placeholders = tuple(_PLACEHOLDER.findall(self.path))

        params = list(self.params)
        if isinstance(self.body, str) and self.body not in params:
            params.append(self.body)
        self.positional = tuple(
            [p for p in self.placeholders if p not in params] + params
        )
        self.keywords = tuple(
            snake_case(wire) for wire in self.query if snake_case(wire) not in self.positional
        )

        parameters = [
            inspect.Parameter(
                name,
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                default=self.defaults.get(name, inspect.Parameter.empty),
            )
            for name in self.positional
        ]
        parameters += [
            inspect.Parameter(
                name,
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                default=self.defaults.get(name),
            )
            for name in self.keywords
        ]
        if self.extra_query:
            parameters.append(inspect.Parameter("query", inspect.Parameter.VAR_KEYWORD))
        self.signature = inspect.Signature(parameters)

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Optional["JiraClient"], owner: Optional[type] = None):
        if instance is None:
            return self

        endpoint = self

        async def call(*args: Any, **kwargs: Any) -> Any:
            return await instance.call_endpoint(endpoint, *args, **kwargs)

        call.__name__ = self.name
        call.__qualname__ = f"{type(instance).__name__}.{self.name}"
        call.__doc__ = self.doc
        call.__signature__ = self.signature  # type: ignore[attr-defined]
        return call

    def bind(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        """Bind call arguments to this endpoint's signature.

        Raises:
            TypeError: If the arguments do not match
        """
        bound = self.signature.bind(*args, **kwargs)
        bound.apply_defaults()
        return dict(bound.arguments)

    def build_query(self, arguments: Mapping[str, Any]) -> dict[str, Any]:
        query = dict(self.fixed_query)
        for wire in self.query:
            query[wire] = arguments[snake_case(wire)]
        if self.extra_query:
            query.update(arguments.get("query") or {})
        return query

    def build_body(self, arguments: Mapping[str, Any]) -> Any:
        if self.body is None:
            return None
        if callable(self.body):
            return self.body(arguments)
        return arguments[self.body]

    def build_request(self, urls: UrlBuilder, arguments: Mapping[str, Any]) -> RequestOptions:
        """Turn bound arguments into ``RequestOptions``."""
        pathname = self.path.format(**{name: arguments[name] for name in self.placeholders})
        url = urls.make_url(
            self.family,
            pathname,
            self.build_query(arguments),
            self.intermediate_path,
            self.encode,
        )
        return RequestOptions(url=url, method=self.method, body=self.build_body(arguments))

    def describe(self) -> str:
        """Short ``VERB family:path`` description."""
        return f"{self.method} {self.family.value}:{self.path or '/'}"
