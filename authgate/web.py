"""HTML routes for account registration and sign in."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import parse_qs

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .errors import AuthFlowError
from .sessions import SESSION_COOKIE_NAME, SessionHandle, SessionManager
from .workflow import AuthWorkflow

logger = logging.getLogger("authgate.web")


def _template_environment() -> Jinja2Templates:
    base_dir = Path(__file__).resolve().parent
    return Jinja2Templates(directory=str(base_dir / "templates"))


async def _parse_form(request: Request) -> Dict[str, str]:
    body_bytes = await request.body()
    content_type = request.headers.get("content-type", "")
    charset = "utf-8"
    if "charset=" in content_type:
        charset = content_type.split("charset=", 1)[1].split(";", 1)[0].strip() or "utf-8"
    try:
        decoded = body_bytes.decode(charset)
    except (LookupError, UnicodeDecodeError):
        decoded = body_bytes.decode("utf-8", errors="replace")
    data = parse_qs(decoded, keep_blank_values=True)
    return {key: values[0] for key, values in data.items() if values}


def register_ui_routes(
    app: FastAPI,
    workflow: AuthWorkflow,
    *,
    session_manager: SessionManager,
    secure_cookies: bool,
) -> None:
    """Expose the signup/signin pages and the protected home page."""

    templates = _template_environment()
    static_dir = Path(__file__).resolve().parent / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    router = APIRouter(include_in_schema=False)

    def _open_session(request: Request) -> SessionHandle:
        return session_manager.open(request.cookies.get(SESSION_COOKIE_NAME))

    def _apply_session(response: Response, session: SessionHandle) -> Response:
        if not session.dirty:
            return response
        cookie_value = session.cookie_value
        if cookie_value is None:
            response.delete_cookie(SESSION_COOKIE_NAME, path="/")
        else:
            response.set_cookie(
                SESSION_COOKIE_NAME,
                cookie_value,
                secure=secure_cookies,
                httponly=True,
                samesite="lax",
                path="/",
            )
        return response

    def _render_register(
        request: Request,
        *,
        mode: str,
        error: Optional[str] = None,
        name: str = "",
        email: str = "",
        status_code: int = status.HTTP_200_OK,
    ) -> HTMLResponse:
        context = {"mode": mode, "error": error, "name": name, "email": email}
        return templates.TemplateResponse(
            request, "register.html", context, status_code=status_code
        )

    def _redirect(request: Request, route_name: str) -> RedirectResponse:
        return RedirectResponse(request.url_for(route_name), status_code=status.HTTP_302_FOUND)

    @router.get("/", response_class=HTMLResponse, name="ui_home")
    async def homepage(request: Request):
        session = _open_session(request)
        if session.user is None:
            return _apply_session(_redirect(request, "ui_signin"), session)
        response = templates.TemplateResponse(request, "index.html", {"user": session.user})
        return _apply_session(response, session)

    @router.get("/signup", response_class=HTMLResponse, name="ui_signup")
    async def signup_form(request: Request):
        return _render_register(request, mode="signup")

    @router.get("/signin", response_class=HTMLResponse, name="ui_signin")
    async def signin_form(request: Request):
        return _render_register(request, mode="signin")

    @router.post("/signup", name="ui_signup_submit")
    async def signup_submit(request: Request):
        form = await _parse_form(request)
        try:
            await workflow.signup(form.get("name"), form.get("email"), form.get("password"))
        except AuthFlowError as exc:
            logger.debug("Signup rejected with status %s", exc.status_code)
            return _render_register(
                request,
                mode="signup",
                error=exc.message,
                name=form.get("name", ""),
                email=form.get("email", ""),
                status_code=exc.status_code,
            )
        return _redirect(request, "ui_signin")

    @router.post("/signin", name="ui_signin_submit")
    async def signin_submit(request: Request):
        form = await _parse_form(request)
        session = _open_session(request)
        try:
            await workflow.signin(form.get("email"), form.get("password"), session)
        except AuthFlowError as exc:
            logger.debug("Signin rejected with status %s", exc.status_code)
            response = _render_register(
                request,
                mode="signin",
                error=exc.message,
                status_code=exc.status_code,
            )
            return _apply_session(response, session)
        return _apply_session(_redirect(request, "ui_home"), session)

    @router.post("/signout", name="ui_signout")
    async def signout(request: Request):
        session = _open_session(request)
        workflow.signout(session)
        response = _redirect(request, "ui_signin")
        response.delete_cookie(SESSION_COOKIE_NAME, path="/")
        return response

    app.include_router(router)


__all__ = ["register_ui_routes"]
