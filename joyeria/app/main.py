from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from joyeria.app.api.v1.api import api_router
from joyeria.app.core.cache import SimpleCache
from joyeria.app.core.config import settings
from joyeria.app.core.logging_config import configure_logging
from joyeria.app.middleware.request_id import RequestIDMiddleware

configure_logging()

app = FastAPI(title="Joyeria POS - Caja y Cuentas por Cobrar")

# Day-summary memo, invalidated by the register revision and by closings
app.state.summary_cache = SimpleCache(
    max_entries=settings.SUMMARY_CACHE_MAX_ENTRIES,
    ttl_seconds=settings.SUMMARY_CACHE_TTL_SECONDS,
)

# ─── CORS ────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
)

# ─── Custom middleware ───────────────────────────────────────────────────────
app.add_middleware(RequestIDMiddleware)

app.include_router(api_router)
