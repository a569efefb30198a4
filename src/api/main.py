import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from src.api.deps import get_rules, get_state_hooks
from src.rules.loader import validate_trigger_states
from src.rules.models import Rules

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    # Load rules and validate trigger states on startup (fail-fast)
    try:
        rules = load_and_validate()
    except Exception as e:
        print(f"CRITICAL: Rules load failed: {e}", file=sys.stderr)
        sys.exit(1)

    logging.getLogger().setLevel(rules.observability.log_level)
    logger.info("Webform handlers ready (project=%s)", rules.project.slug)

    yield
    # Shutdown cleanup if needed


def load_and_validate() -> Rules:
    rules = get_rules()
    errors = validate_trigger_states(rules, get_state_hooks().get_state_options())
    if errors:
        raise ValueError("; ".join(errors))
    return rules


app = FastAPI(
    title="Webform Double Opt-In API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import webform  # noqa: E402

app.include_router(webform.router, prefix="/api/webform", tags=["Webform"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
