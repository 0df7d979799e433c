"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

import src.api.records_router as records_module
from src.chatbot.dependencies import api_key_protection
from src.chatbot.modes.guided import GuidedMode, SessionNotFoundError
from src.chatbot.state_manager import StateManager
from src.chatbot.validation import FormValidationError
from src.integrations.clients.csv_records import CsvBondLookupClient
from src.integrations.clients.real_http.bond_lookup import HttpBondLookupClient
from src.integrations.clients.sql_records import SqlBondLookupClient
from src.utils.config_loader import LookupConfig, load_app_config

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Initialize FastAPI app
app = FastAPI(
    title="Bond Chatbot API",
    description="Guided bond lookup, purchase information, consent and payment link delivery",
    version="1.0.0",
    dependencies=[Depends(api_key_protection)],  # protect everything by default
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

app_config = load_app_config()

# Initialize stores: use real Postgres/Redis when env is set, else in-memory stubs
if os.getenv("DATABASE_URL"):
    from src.database.postgres_real import PostgresDB

    postgres_db = PostgresDB(connection_string=os.environ["DATABASE_URL"])
else:
    from src.database.postgres import PostgresDB

    postgres_db = PostgresDB()

if os.getenv("REDIS_URL"):
    from src.database.redis_real import RedisCache

    redis_cache = RedisCache(url=os.environ["REDIS_URL"], default_ttl=app_config.session.ttl_seconds)
else:
    from src.database.redis import RedisCache

    redis_cache = RedisCache()


def _build_lookup_client(cfg: LookupConfig, db):
    """Pick the bond record source. This is the only place the choice is made."""
    if cfg.backend == "http":
        return HttpBondLookupClient(url=cfg.url, api_key=cfg.api_key, timeout_seconds=cfg.timeout_seconds)
    if cfg.backend == "sql":
        if not hasattr(db, "find_bond_record"):
            raise ValueError("BOND_LOOKUP_BACKEND=sql requires DATABASE_URL")
        return SqlBondLookupClient(db)

    if cfg.csv_path:
        path = Path(cfg.csv_path)
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        if path.exists():
            return CsvBondLookupClient.from_path(path)
        logger.warning("Bond CSV not found at %s; waiting for an upload", path)
    return CsvBondLookupClient()


state_manager = StateManager(redis_cache, session_ttl=app_config.session.ttl_seconds)
bond_lookup = _build_lookup_client(app_config.lookup, postgres_db)
guided = GuidedMode(
    state_manager,
    bond_lookup,
    postgres_db,
    window_days=app_config.wizard.effective_date_window_days,
)

records_module.bond_lookup = bond_lookup

api_router = APIRouter()


def get_guided():
    """Dependency for the wizard"""
    return guided


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================


class ChatMessage(BaseModel):
    """Chat request. Use form_data for answers and actions, e.g. {"action": "back"}."""

    message: str = ""
    session_id: Optional[str] = None
    user_id: str = "anonymous"
    metadata: Optional[Dict] = None
    form_data: Optional[Dict] = None  # when set, used as the wizard input instead of message


class ChatResponse(BaseModel):
    response: Dict
    session_id: str
    mode: str
    timestamp: str


class CreateSessionRequest(BaseModel):
    """Create a new wizard session (e.g. when the user opens the chatbot)."""

    user_id: str = Field(default="anonymous", description="User identifier (e.g. phone number or auth id)")


def _validation_error(e: FormValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={
            "error": "validation_error",
            "message": e.message,
            "field_errors": e.field_errors,
        },
    )


# ============================================================================
# ENDPOINTS
# ============================================================================
@app.get("/", tags=["Health"])
async def root():
    """Health check endpoint."""
    return {"service": "Bond Chatbot API", "status": "healthy", "version": "1.0.0", "timestamp": datetime.now().isoformat()}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check (record source, Redis)."""
    return {
        "status": "healthy",
        "lookup": {"source": bond_lookup.source},
        "database": {"redis": redis_cache.ping()},
        "timestamp": datetime.now().isoformat(),
    }


@api_router.post("/session", tags=["Sessions"])
async def create_session(body: Optional[CreateSessionRequest] = None, wizard: GuidedMode = Depends(get_guided)):
    """Create a new wizard session and return the first question."""
    try:
        session_id = state_manager.create_session((body or CreateSessionRequest()).user_id)
        return await wizard.start(session_id)
    except Exception as e:
        logger.error(f"Error creating session: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@api_router.get("/session/{session_id}", tags=["Sessions"])
async def get_session_state(session_id: str, wizard: GuidedMode = Depends(get_guided)):
    """Return current session state for the frontend (phase, step, step name)."""
    try:
        return wizard.describe(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@api_router.post("/chat/message", response_model=ChatResponse, tags=["Chat"])
async def api_send_message(request: ChatMessage, wizard: GuidedMode = Depends(get_guided)):
    """
    Submit an answer or action for the current wizard phase. Without a
    session_id a new session is created and its first prompt returned.
    """
    try:
        if not request.session_id:
            session_id = state_manager.create_session(request.user_id)
            result = await wizard.start(session_id)
        else:
            session_id = request.session_id
            user_input: Any = request.form_data if request.form_data is not None else request.message
            result = await wizard.process(user_input, session_id)
        return ChatResponse(response=result, session_id=session_id, mode="guided", timestamp=datetime.now().isoformat())
    except FormValidationError as e:
        raise _validation_error(e)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except Exception as e:
        logger.error(f"Error processing message: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@api_router.delete("/sessions/{session_id}", tags=["Sessions"])
async def end_session(session_id: str):
    """End a wizard session."""
    try:
        ended = state_manager.end_session(session_id)
    except Exception as e:
        logger.error(f"Error ending session: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    if not ended:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"message": "Session ended successfully"}


# API versioning: primary prefix is /api/v1; /api is kept for backward compatibility
app.include_router(api_router, prefix="/api/v1")
app.include_router(api_router, prefix="/api")
app.include_router(records_module.api, prefix="/api/v1")
app.include_router(records_module.api, prefix="/api")


# ============================================================================
# STARTUP/SHUTDOWN EVENTS
# ============================================================================
@app.on_event("startup")
async def startup_event():
    """Initialize on startup"""
    logger.info("Starting Bond Chatbot API (lookup source=%s)...", bond_lookup.source)

    try:
        postgres_db.create_tables()
        logger.info("Database tables initialized")
    except Exception as e:
        logger.error(f"Error initializing database: {str(e)}")

    if redis_cache.ping():
        logger.info("Redis connection successful")
    else:
        logger.warning("Redis connection failed")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down Bond Chatbot API...")
