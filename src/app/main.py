# src/app/main.py
from dotenv import load_dotenv

load_dotenv(override=True)
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request

from src.app.core.errors import register_error_handlers
from src.app.features.pharmacies.api import router as pharmacies_router
from src.app.features.pharmacists.api import router as pharmacists_router
from src.app.features.store.api import router as store_router
from src.db.automigrate import apply_migrations_safely, ensure_tables_exist
from src.db.session import dispose_engines
from src.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Apply DB migrations automatically before serving requests
    apply_migrations_safely()
    ensure_tables_exist()
    yield
    # Release pooled connections on shutdown
    await dispose_engines()


app = FastAPI(title="Pharmacy Marketplace API", lifespan=lifespan)
register_error_handlers(app)
app.include_router(store_router)
app.include_router(pharmacies_router)
app.include_router(pharmacists_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("%s %s", request.method, request.url.path)
    return await call_next(request)


@app.get("/health")
async def health():
    return {"status": "ok", "env": settings.APP_ENV}
