"""Small GraphQL client that posts queries over HTTP."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable

import requests


class GraphQLError(Exception):
    """Raised when the server rejects a query or its response cannot be read."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"graphql: {self.message}"


@dataclass
class File:
    """A file to upload with a multipart request."""

    field: str
    name: str
    reader: BinaryIO


class Request:
    """A GraphQL query with its variables, headers and files."""

    def __init__(self, query: str) -> None:
        self.query = query
        self.vars: dict[str, Any] = {}
        self.files: list[File] = []
        self.header: dict[str, str] = {}

    def var(self, key: str, value: Any) -> None:
        """Set the variable ``key`` of the query."""
        self.vars[key] = value

    def file(self, field: str, name: str, reader: BinaryIO) -> None:
        """Attach a file to upload under the form field ``field``."""
        self.files.append(File(field, name, reader))


class Client:
    """Runs GraphQL requests against one endpoint.

    Transport failures surface as ``requests`` exceptions; everything the
    server reports is raised as :class:`GraphQLError`.
    """

    def __init__(
        self,
        endpoint: str,
        log: Callable[[str], None] | None = None,
        session: requests.Session | None = None,
        use_multipart_form: bool = False,
    ) -> None:
        self.endpoint = endpoint
        self.log = log
        self.use_multipart_form = use_multipart_form
        self._session = session if session is not None else requests.Session()

    def run(self, request: Request) -> Any:
        """Execute ``request`` and return the ``data`` member of the response."""
        if self.use_multipart_form:
            response = self._post_multipart(request)
        else:
            response = self._post_json(request)
        if not response.ok:
            raise GraphQLError(
                f"server returned a non-200 status code: {response.status_code}"
            )
        return self._parse(response.content)

    def _post_json(self, request: Request) -> requests.Response:
        if self.log is not None:
            self.log(f"request variables: {request.vars} query: {request.query}")
        body = {"query": request.query, "variables": request.vars}
        return self._session.post(self.endpoint, json=body, headers=dict(request.header))

    def _post_multipart(self, request: Request) -> requests.Response:
        form: dict[str, str] = {"query": request.query}
        if request.vars:
            try:
                form["variables"] = json.dumps(request.vars, separators=(",", ":"))
            except (TypeError, ValueError) as exc:
                raise GraphQLError(f"error encoding variables: {exc}") from exc
        files = [(f.field, (f.name, f.reader)) for f in request.files]
        return self._session.post(self.endpoint, data=form, files=files or None)

    @staticmethod
    def _parse(content: bytes) -> Any:
        try:
            body = json.loads(content)
        except ValueError as exc:
            raise GraphQLError(f"decoding response: {exc}") from exc
        if body is None:
            return None
        if not isinstance(body, dict):
            raise GraphQLError("decoding response: expected a JSON object")
        errors = body.get("errors") or []
        if errors:
            first = errors[0]
            message = first.get("message", "") if isinstance(first, dict) else str(first)
            raise GraphQLError(message)
        return body.get("data")