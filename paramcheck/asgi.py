"""Starlette / FastAPI integration.

Wires a RequestValidator into an application and gives handlers one
ValidationSession per request:

    app = Starlette(routes=[...])
    install(app, RequestValidator(skip_validation_on_first_error=True))

    async def create_user(request):
        session = await get_session(request)
        session.check_body("email").is_email()
        params = session.valid()  # raises ValidationFailed -> 400 response
        ...

With FastAPI, ``get_session`` also works as a dependency:
``session: ValidationSession = Depends(get_session)``.
"""

from typing import Any, Dict

import structlog
from starlette.requests import Request
from starlette.responses import JSONResponse

from paramcheck.errors import ValidationFailed
from paramcheck.session import RequestValidator, ValidationSession
from paramcheck.types import RequestData

log = structlog.get_logger(__name__)

_JSON_CONTENT_TYPES = ("application/json", "+json")
_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def install(app: Any, validator: RequestValidator, status_code: int = 400) -> None:
    """Attach a validator to an application and render ValidationFailed as JSON.

    Args:
        app: A Starlette (or FastAPI) application
        validator: The application-wide validator configuration
        status_code: HTTP status for validation failure responses
    """
    app.state.request_validator = validator

    async def validation_failed_handler(request: Request, exc: ValidationFailed) -> JSONResponse:
        log.warning(
            "validation_error_response",
            path=request.url.path,
            method=request.method,
            error_count=len(exc.errors),
        )
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    app.add_exception_handler(ValidationFailed, validation_failed_handler)


async def _read_body(request: Request) -> Any:
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if any(content_type.endswith(marker) for marker in _JSON_CONTENT_TYPES):
        raw = await request.body()
        return await request.json() if raw else {}
    if content_type in _FORM_CONTENT_TYPES:
        form = await request.form()
        return dict(form)
    return {}


async def request_data(request: Request) -> RequestData:
    """Collect the four data sources of a Starlette request.

    Headers keep Starlette's lowercased names. Repeated query keys keep their
    last value, as Starlette's QueryParams does on plain lookup.
    """
    headers: Dict[str, str] = dict(request.headers)
    return RequestData(
        params=dict(request.path_params),
        query=dict(request.query_params),
        body=await _read_body(request),
        headers=headers,
    )


async def get_session(request: Request) -> ValidationSession:
    """Return the request's ValidationSession, creating it on first use.

    Raises:
        RuntimeError: If install() was not called on the application
    """
    session = getattr(request.state, "validation_session", None)
    if session is not None:
        return session

    validator = getattr(request.app.state, "request_validator", None)
    if validator is None:
        raise RuntimeError("No RequestValidator installed; call paramcheck.asgi.install(app, validator)")

    session = validator.session(await request_data(request))
    request.state.validation_session = session
    return session


__all__ = [
    "install",
    "request_data",
    "get_session",
]
