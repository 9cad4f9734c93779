import logging
from pathlib import Path
from typing import Callable, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from fastapi import (
    FastAPI,
    Depends,
    Form,
    HTTPException,
    Request,
    Response,
    status,
)
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import accounts, chats
from .config import settings
from .errors import ChatboardError, Conflict, InvalidCredentials, Unauthenticated
from .logging_utils import logging_middleware
from .metrics import inc_auth_event, inc_chat_event, render_metrics
from .models import User
from .session import SESSION_COOKIE, resolve_session
from .storage import get_db, init_db


logger = logging.getLogger("chatboard")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

app = FastAPI(title="Chatboard")

_OVERRIDABLE_METHODS = {"PATCH", "DELETE", "PUT"}


async def method_override_middleware(request: Request, call_next: Callable) -> Response:
    # HTML forms only send GET/POST; POST /delete/1?_method=DELETE dispatches as DELETE
    if request.method == "POST":
        override = request.query_params.get("_method", "").upper()
        if override in _OVERRIDABLE_METHODS:
            request.scope["method"] = override
    return await call_next(request)


# Last registered runs first, so overrides are applied before the request is logged
app.middleware("http")(logging_middleware)
app.middleware("http")(method_override_middleware)


# ---------- Startup ----------


@app.on_event("startup")
def on_startup() -> None:
    init_db()


# ---------- Helpers ----------


def is_ready(db: Session | None = None) -> tuple[bool, str]:
    if not settings.SECRET_KEY:
        return False, "SECRET_KEY not set"
    if db is None:
        return True, "ok"
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        return False, f"DB error: {e}"
    return True, "ok"


def _redirect_home() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


def _login_redirect(request: Request, token: str, user: User, result: str) -> RedirectResponse:
    inc_auth_event(result)
    request.state.log_extra.update({"result": result, "user_id": user.id})
    response = _redirect_home()
    # readable by page scripts on purpose
    response.set_cookie(key=SESSION_COOKIE, value=token, httponly=False)
    return response


# ---------- Exception handlers ----------


@app.exception_handler(ChatboardError)
async def chatboard_error_handler(request: Request, exc: ChatboardError):
    if isinstance(exc, Conflict):
        inc_auth_event("signup_conflict")
    elif isinstance(exc, InvalidCredentials):
        inc_auth_event("login_failed")
    else:
        inc_chat_event("refused")

    log_extra = getattr(request.state, "log_extra", None)
    if isinstance(log_extra, dict):
        log_extra["result"] = type(exc).__name__
    return PlainTextResponse(exc.message, status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # routes match on verb + path, so a known path with the wrong verb is unmatched too
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return PlainTextResponse("Page Not Found", status_code=status.HTTP_404_NOT_FOUND)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields = ", ".join(str(err["loc"][-1]) for err in exc.errors())
    return PlainTextResponse(
        f"Invalid request: {fields}",
        status_code=422,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return PlainTextResponse(
        "Something went wrong!",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# ---------- Operational endpoints ----------


@app.get("/health/live")
def health_live():
    return {"status": "ok"}


@app.get("/health/ready")
def health_ready(db: Session = Depends(get_db)):
    ok, msg = is_ready(db)
    if not ok:
        raise HTTPException(status_code=503, detail=msg)
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    return PlainTextResponse(content=render_metrics(), media_type="text/plain")


# ---------- Accounts ----------


@app.get("/signup")
def signup_form(request: Request, current_user: Optional[User] = Depends(resolve_session)):
    if current_user:
        return PlainTextResponse("You are already signed up and logged in!")
    return templates.TemplateResponse(request, "signup.html")


@app.post("/signup")
def signup(
    request: Request,
    username: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    user, token = accounts.register(db, email=email, username=username, password=password)
    return _login_redirect(request, token, user, "signup")


@app.get("/login")
def login_form(request: Request, current_user: Optional[User] = Depends(resolve_session)):
    if current_user:
        return PlainTextResponse("You are already logged in!")
    return templates.TemplateResponse(request, "login.html")


@app.post("/login")
def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    user, token = accounts.authenticate(db, email=email, password=password)
    return _login_redirect(request, token, user, "login")


@app.post("/logout")
def logout(request: Request):
    inc_auth_event("logout")
    response = _redirect_home()
    response.delete_cookie(key=SESSION_COOKIE)
    return response


# ---------- Chats ----------


@app.get("/")
def home(
    request: Request,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(resolve_session),
):
    data = chats.list_chats(db)
    return templates.TemplateResponse(
        request,
        "home.html",
        {"data": data, "curruser": current_user},
    )


@app.get("/newchat")
def new_chat_form(request: Request, current_user: Optional[User] = Depends(resolve_session)):
    if current_user is None:
        raise Unauthenticated()
    return templates.TemplateResponse(request, "newchat.html", {"curruser": current_user})


@app.post("/submitchat")
def submit_chat(
    request: Request,
    sender: str = Form(..., alias="from"),
    recipient: str = Form(..., alias="to"),
    msg: str = Form(...),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(resolve_session),
):
    chat = chats.create_chat(db, current_user, sender=sender, recipient=recipient, msg=msg)
    inc_chat_event("created")
    request.state.log_extra.update({"result": "created", "chat_id": chat.id})
    return _redirect_home()


@app.get("/edit/{chat_id}")
def edit_form(
    request: Request,
    chat_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(resolve_session),
):
    chat = chats.get_owned_chat(db, chat_id, current_user)
    return templates.TemplateResponse(
        request,
        "editform.html",
        {"data": chat, "curruser": current_user},
    )


@app.patch("/edited/{chat_id}")
def edited(
    request: Request,
    chat_id: int,
    msg: str = Form(...),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(resolve_session),
):
    chats.edit_chat(db, chat_id, current_user, msg=msg)
    inc_chat_event("edited")
    request.state.log_extra.update({"result": "edited", "chat_id": chat_id})
    return _redirect_home()


@app.delete("/delete/{chat_id}")
def delete(
    request: Request,
    chat_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(resolve_session),
):
    chats.delete_chat(db, chat_id, current_user)
    inc_chat_event("deleted")
    request.state.log_extra.update({"result": "deleted", "chat_id": chat_id})
    return _redirect_home()
