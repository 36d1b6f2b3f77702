"""Classification of the outcome of a request.

A request is classified exactly once: the classifier either returns the
response of the request (when the server responded with a success status,
or with a status that is passed through to the caller) or raises exactly one
RequestError_ describing the failure. Redirects are followed transparently.
"""

import logging

from http.client import responses as reason_phrases
from typing import Optional

from quest.buffering import parse_json
from quest.errors import (
    ErrorContext,
    RequestError,
    TooManyRedirectsError,
    UsageError,
)
from quest.http.errors import (
    ResponseError,
    TransportError,
    response_error_class_for_status,
)
from quest.http.request import Request
from quest.http.response import Response
from quest.settings import Settings

__all__ = ("ok", "reason_phrase")


log = logging.getLogger(__name__)

#: Status codes of redirects that we follow
REDIRECT_STATUS_CODES = frozenset((301, 302))


def reason_phrase(status: int) -> str:
    """Returns the standard reason phrase of the given HTTP status code."""
    return reason_phrases.get(status, "Unknown Status")


async def ok(
    request: Request,
    *,
    error: Optional[ErrorContext] = None,
    settings: Optional[Settings] = None,
) -> Response:
    """Sends the given request and classifies its outcome.

    The request is ended as the first step; no writes are permitted after
    this function was called.

    Parameters:
        request: the request to send
        error: context of the request that the caller issued originally;
            it is attached to the raised error. Defaults to the context of
            the given request.
        settings: the settings to use; defaults to the settings of the
            transport of the request

    Returns:
        the response of the request if the server responded with a 2xx
        status code or with a status code that is not classified as an
        error (1xx, 3xx other than followed redirects). The body of the
        response has not been read yet.

    Raises:
        TransportError: if the connection failed before a response arrived
        ResponseError: if the server responded with a 4xx or 5xx status code
        TooManyRedirectsError: if the request was redirected more times than
            permitted by the settings
    """
    context = error or ErrorContext(url=request.url, headers=request.get_headers())
    settings = settings or request.transport.settings
    redirects = 0

    while True:
        response = await _issue(request, context)
        status = response.status

        if 200 <= status < 300:
            return response

        location = response.headers.get("location")
        if status in REDIRECT_STATUS_CODES and location:
            await response.aclose()

            if settings.max_redirects is not None and redirects >= settings.max_redirects:
                raise context.attach(
                    TooManyRedirectsError(
                        "Maximum number of redirects exceeded",
                        code=status,
                    )
                )

            try:
                request = request.transport.redirect(request, location)
            except UsageError as ex:
                raise context.attach(
                    RequestError(
                        "Invalid redirect location: {0}".format(location),
                        code=status,
                    )
                ) from ex

            redirects += 1
            log.debug("Following %d redirect to %s", status, request.url)
            continue

        if 400 <= status < 600:
            raise context.attach(await _error_from_response(response))

        return response


async def _issue(request: Request, context: ErrorContext) -> Response:
    try:
        return await request.end()
    except TransportError as ex:
        await request.abort()
        raise context.attach(ex)


async def _error_from_response(response: Response) -> ResponseError:
    """Creates the error corresponding to a response with a 4xx or 5xx status
    code and closes the response.

    The message of the error is taken from the ``error`` or ``x-error``
    response headers, or from the ``error`` field of a JSON response body.
    A ``code`` field in the JSON body overrides the status code of the
    error.
    """
    status = response.status
    code = status
    message = response.headers.get("error") or response.headers.get("x-error")

    try:
        if not message:
            try:
                body = await parse_json(response)
            except RequestError as ex:
                log.debug("Cannot read error message from response body: %s", ex)
            else:
                if isinstance(body, dict) and body.get("error"):
                    message = str(body["error"])
                    code = body.get("code") or status
    finally:
        await response.aclose()

    if not message:
        message = "{0} {1}".format(status, reason_phrase(status))

    return response_error_class_for_status(status)(message, code=code)
