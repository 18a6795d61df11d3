import inspect
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from openai import AsyncOpenAI

from dal.coffee_dal import CoffeeDAL
from routes.coffee_route import router as coffee_router
from routes.photo_route import router as photo_router
from services.coffee_processor import CoffeeProcessor
from services.record_trigger import RecordTrigger
from services.storage_bucket import StorageBucket
from utils.config import Settings
from utils.database_init import AsyncDatabaseInitializer

load_dotenv()  # Load environment variables from .env file if present

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
LOGGER = logging.getLogger(__name__)

SHUTDOWN_DRAIN_SECONDS = 30.0


def build_openai_client(settings: Settings) -> Optional[AsyncOpenAI]:
    """Create the async OpenAI client, or None when no API key is configured."""
    if not settings.api_key:
        return None
    try:
        return AsyncOpenAI(api_key=settings.api_key, base_url=settings.ai_base_url)
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc


async def _close_client(client) -> None:
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception as exc:
        # Ignore shutdown errors to avoid masking more important issues.
        LOGGER.debug("Error while closing OpenAI client: %s", exc)


def create_app(settings: Optional[Settings] = None, openai_client: Optional[AsyncOpenAI] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        settings: Resolved configuration; read from the environment when omitted.
        openai_client: Optional preconfigured client (tests inject fakes here).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan manager to initialize:
          - the SQLite database holding coffee records
          - the storage bucket and the OpenAI async client
          - the record processor and the trigger that dispatches creation events
        and attach them to `app.state`.
        """
        resolved = settings or Settings.from_env()
        app.state.settings = resolved

        db_initializer = AsyncDatabaseInitializer(resolved.database_dir)
        await db_initializer.ensure_database()
        app.state.db_initializer = db_initializer

        bucket = StorageBucket(resolved.storage_bucket_dir)
        bucket.root.mkdir(parents=True, exist_ok=True)
        app.state.bucket = bucket

        client = openai_client if openai_client is not None else build_openai_client(resolved)
        app.state.openai_client = client

        processor = CoffeeProcessor(CoffeeDAL(db_initializer), bucket, client, resolved)
        trigger = RecordTrigger(processor, max_instances=resolved.max_instances)
        app.state.record_trigger = trigger

        try:
            yield
        finally:
            await trigger.drain(timeout=SHUTDOWN_DRAIN_SECONDS)
            if client is not None and openai_client is None:
                await _close_client(client)

    app = FastAPI(lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports datastore, AI client, and API key presence.
        """
        state = request.app.state
        has_db = hasattr(state, "db_initializer")
        has_openai = getattr(state, "openai_client", None) is not None
        app_settings = getattr(state, "settings", None)
        return {
            "ok": True,
            "db_initialized": has_db,
            "openai_available": has_openai,
            "api_key_configured": bool(app_settings and app_settings.api_key),
            "pending_tasks": state.record_trigger.pending if hasattr(state, "record_trigger") else 0,
        }

    # Register application routers
    app.include_router(coffee_router)
    app.include_router(photo_router)

    return app


app = create_app()
