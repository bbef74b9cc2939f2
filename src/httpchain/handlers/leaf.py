"""
=============================================================================
LEAF HANDLERS
=============================================================================

Terminal handlers: they sit at the innermost position of a chain, always
write a 200-class response and never forward.

    leaf = TextHandler("Middlewares in Go!")
    leaf(request, response)   # response: 200, text/plain, body

A leaf runs only after every gating middleware in front of it has
forwarded, so it never re-checks paths or tokens.

=============================================================================
"""

from typing import Any, Union
import json

from ..http.request import Request
from ..http.response import Response, TEXT_PLAIN, APPLICATION_JSON
from ..http.status_codes import HTTPStatus


def _check_success(status: int) -> int:
    if not 200 <= status < 300:
        raise ValueError(f"Leaf handlers write 2xx responses only, got {status}")
    return status


class TextHandler:
    """
    Write a fixed text body.

    Args:
        body: Response body.
        content_type: Content-Type header.
        status: A 2xx status code.
    """

    def __init__(
        self,
        body: Union[str, bytes],
        content_type: str = TEXT_PLAIN,
        status: int = HTTPStatus.OK,
    ):
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        self.content_type = content_type
        self.status = _check_success(status)

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def __call__(self, request: Request, response: Response) -> None:
        response.write(self.body, self.status, self.content_type)


class JSONHandler(TextHandler):
    """
    Write a fixed JSON payload, serialized once at construction.
    """

    def __init__(self, payload: Any, status: int = HTTPStatus.OK):
        super().__init__(json.dumps(payload), APPLICATION_JSON, status)
        self.payload = payload
