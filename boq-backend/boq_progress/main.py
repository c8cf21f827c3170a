import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from .db import PostgresRecordStore, close_pool, initialize_database, open_pool, pool
from .repos.record_store import InMemoryRecordStore
from .routers import analytics, calendar, plans
from .services.analytics_cache import AnalyticsCache, MemoryCacheSubstrate


logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    open_pool()  # open DB pool at startup
    database_available = True
    try:
        initialize_database()
    except Exception as exc:  # pragma: no cover - fallback for local dev without Postgres
        database_available = False
        logger.warning("Database initialization failed; continuing with an in-memory store: %s", exc)
    app.state.database_available = database_available
    app.state.store = PostgresRecordStore() if database_available else InMemoryRecordStore()
    app.state.analytics_cache = AnalyticsCache(MemoryCacheSubstrate())
    try:
        yield
    finally:
        close_pool()  # close pool at shutdown

app = FastAPI(
    title="BOQ Progress Backend",
    version="0.1.0",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(calendar.router)
app.include_router(plans.router)
app.include_router(analytics.router)

@app.get("/api/health")
def health():
    return {"ok": True, "database": getattr(app.state, "database_available", False)}

# DB connectivity quick-check
@app.get("/api/db/ping")
def db_ping():
    with pool.connection() as conn:
        with conn.cursor() as cur:
            cur.execute("select 'ok'::text")
            (status,) = cur.fetchone()
            return {"db": status}
