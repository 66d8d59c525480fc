"""
Nourish Web - FastAPI application.

Thin HTTP surface over the agent: cookie-session login, a streaming
assistant endpoint and text meal logging (rate-limited per user). The store,
model, meal analyzer and image storage are FastAPI dependencies so tests can
swap them out.
"""

import json
import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any

import bcrypt
from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sse_starlette.sse import EventSourceResponse

from nourish import __version__
from nourish.agent.assistant import prepare_turn, run_prepared_turn
from nourish.agent.messages import ClientMessage
from nourish.config import settings
from nourish.db.adapter import Store, where
from nourish.db.client import SupabaseStore
from nourish.errors import ContextValidationError, MealAnalysisError
from nourish.llm.client import ModelClient, get_model_client
from nourish.meal_logging import MealAnalyzer, analyze_meal_text, log_meal_from_description
from nourish.observability import configure_logging
from nourish.observability.session_logger import create_session_logger
from nourish.storage import ImageStorage, SupabaseImageStorage
from nourish.tools.schema import IsoDate

logger = logging.getLogger(__name__)

SESSION_COOKIE = "nourish_session"

# In-memory session store; sessions do not survive a restart
sessions: dict[str, dict[str, Any]] = {}

_messages_adapter = TypeAdapter(list[ClientMessage])


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    yield


app = FastAPI(title="Nourish", version=__version__, lifespan=lifespan)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


# =============================================================================
# Dependencies
# =============================================================================


def get_store() -> Store:
    return SupabaseStore()


def get_model() -> ModelClient:
    return get_model_client()


def get_image_storage() -> ImageStorage | None:
    return SupabaseImageStorage() if settings.has_supabase else None


def get_meal_analyzer() -> MealAnalyzer:
    return analyze_meal_text


# =============================================================================
# Models
# =============================================================================


class LoginRequest(BaseModel):
    email: str
    password: str


class LogMealRequest(BaseModel):
    description: str = Field(min_length=3, max_length=500)
    date: IsoDate | None = None


# =============================================================================
# Session Management
# =============================================================================


def get_session(request: Request) -> dict[str, Any] | None:
    """Get session from cookie."""
    session_id = request.cookies.get(SESSION_COOKIE)
    if not session_id:
        return None
    session = sessions.get(session_id)
    if session and session.get("expires_at", datetime.min) > datetime.now():
        return session
    return None


def require_session(request: Request) -> dict[str, Any]:
    """Require valid session or raise 401."""
    session = get_session(request)
    if not session:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return session


def create_session(user_id: str, email: str) -> str:
    """Create a new session and return its id."""
    session_id = secrets.token_urlsafe(32)
    sessions[session_id] = {
        "user_id": user_id,
        "email": email,
        "expires_at": datetime.now() + timedelta(hours=settings.session_expire_hours),
    }
    return session_id


# =============================================================================
# Rate Limiting
# =============================================================================


def rate_limit_key(request: Request) -> str:
    """Limit signed-in users by id, anyone else by address."""
    session = get_session(request)
    return f"user:{session['user_id']}" if session else get_remote_address(request)


limiter = Limiter(key_func=rate_limit_key)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.info("Rate limit hit for %s: %s", rate_limit_key(request), exc.detail)
    return JSONResponse(status_code=429, content={"error": "Too many requests. Please try again later."})


# =============================================================================
# Auth Endpoints
# =============================================================================


@app.post("/api/login")
async def login(req: LoginRequest, response: Response, store: Store = Depends(get_store)):
    """Login with email and password."""
    users = await store.find("users", [where("email", "=", req.email.strip().lower())], limit=1)
    password_hash = users[0].get("password_hash") if users else None

    if not password_hash or not bcrypt.checkpw(req.password.encode(), password_hash.encode()):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    user = users[0]
    session_id = create_session(user_id=user["id"], email=user["email"])
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_id,
        httponly=True,
        max_age=settings.session_expire_hours * 3600,
        samesite="lax",
        secure=settings.is_production,
    )
    return {"success": True, "user_id": user["id"]}


@app.post("/api/logout")
async def logout(request: Request, response: Response):
    """Logout and clear session."""
    session_id = request.cookies.get(SESSION_COOKIE)
    if session_id:
        sessions.pop(session_id, None)
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True}


# =============================================================================
# Assistant Endpoint
# =============================================================================


def _bad_request(error: str, issues: list[str] | None = None) -> JSONResponse:
    body: dict[str, Any] = {"error": error}
    if issues:
        body["issues"] = issues
    return JSONResponse(status_code=400, content=body)


@app.post("/api/assistant")
async def assistant(
    request: Request,
    session: dict = Depends(require_session),
    store: Store = Depends(get_store),
    model: ModelClient = Depends(get_model),
    storage: ImageStorage | None = Depends(get_image_storage),
):
    """
    Stream one assistant turn as server-sent events.

    Body: {"messages": [{"role", "content"}, ...], "context": {...}}. The
    request is rejected with 400 before any model call if the messages are
    missing or the context snapshot is malformed.
    """
    try:
        body = await request.json()
    except json.JSONDecodeError:
        return _bad_request("Request body must be JSON")
    if not isinstance(body, dict):
        return _bad_request("Request body must be an object")

    try:
        messages = _messages_adapter.validate_python(body.get("messages") or [])
    except ValidationError as e:
        return _bad_request("Invalid messages", [err["msg"] for err in e.errors()])
    if not messages:
        return _bad_request("Messages are required")

    user_id = session["user_id"]
    try:
        context, system_prompt = await prepare_turn(store, user_id, body.get("context"))
    except ContextValidationError as e:
        logger.info("Rejected context for %s: %s", user_id, e)
        return _bad_request("Invalid context", e.issues)

    session_log = create_session_logger()

    async def event_generator():
        try:
            async for event in run_prepared_turn(
                model,
                store,
                user_id,
                context,
                system_prompt,
                [m.to_chat() for m in messages],
                storage=storage,
                is_disconnected=request.is_disconnected,
                session_logger=session_log,
            ):
                kind = event.pop("type")
                yield {"event": kind, "data": json.dumps(event, default=str)}
        finally:
            session_log.close()

    return EventSourceResponse(event_generator())


# =============================================================================
# Meal Logging Endpoint
# =============================================================================


@app.post("/api/meals")
@limiter.limit(lambda: settings.meal_analysis_rate_limit)
async def log_meal_text(
    request: Request,
    req: LogMealRequest,
    session: dict = Depends(require_session),
    store: Store = Depends(get_store),
    analyzer: MealAnalyzer = Depends(get_meal_analyzer),
):
    """
    Estimate a meal from its description and log it.

    Body: {"description": "2 eggs and toast", "date": "YYYY-MM-DD"?}. The date
    defaults to today in the user's profile timezone.
    """
    user_id = session["user_id"]
    try:
        meal = await log_meal_from_description(
            store, user_id, req.description, req.date, analyzer=analyzer
        )
    except MealAnalysisError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception:
        logger.exception("Meal text analysis failed for %s", user_id)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to analyze meal description. Please try again."},
        )
    return {"success": True, "meal": meal.model_dump()}
