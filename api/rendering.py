"""
Turns pipeline outcomes into HTTP responses.
"""

from typing import Any, Dict

from fastapi import Request, status
from fastapi.responses import RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from api.config import config as api_config
from catalog.pipeline import NotSupported, Outcome, Redirect, Render

templates = Jinja2Templates(directory=api_config.templates_directory)


async def read_form(request: Request) -> Dict[str, Any]:
    """
    Decode a submitted form.

    A field sent once maps to its value and a field sent several times maps
    to the list of its values; fields not sent are absent.
    """
    form = await request.form()
    body = {}
    for key in form.keys():
        values = form.getlist(key)
        body[key] = values[0] if len(values) == 1 else values
    return body


def render_error(request: Request, message: str, status_code: int, detail: str = None) -> Response:
    return templates.TemplateResponse(
        request,
        "error.html",
        {"title": "Error", "message": message, "status_code": status_code, "detail": detail},
        status_code=status_code,
    )


def to_response(request: Request, outcome: Outcome) -> Response:
    """Produce the single response for a handler's outcome."""
    if isinstance(outcome, Redirect):
        return RedirectResponse(outcome.url, status_code=status.HTTP_302_FOUND)
    if isinstance(outcome, NotSupported):
        return templates.TemplateResponse(
            request,
            "not_supported.html",
            {"title": "Not implemented", "operation": outcome.operation},
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
        )
    if isinstance(outcome, Render):
        return templates.TemplateResponse(request, f"{outcome.template}.html", outcome.context)
    raise TypeError(f"Unexpected handler outcome: {outcome!r}")
