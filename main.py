import json
import logging
import os
import platform
import random
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import fastapi
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from context import AppContext
from database import get_db
from errors import CacheUnavailable, StoreUnavailable
from health import check_readiness
from models import User
from schemas import UserCreate, UserCreated
from settings import load_settings

logger = logging.getLogger(__name__)

CACHE_TEST_KEY = "test_data"
CACHE_TEST_TTL = 30

# Configurer Jinja2 et le dossier des templates
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

router = APIRouter()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/")
def read_root(request: Request):
    context = request.app.state.context
    settings = request.app.state.settings

    total_views = context.counter.record_view()

    # Informations sur la base de données
    try:
        db_info = context.store.describe()
    except StoreUnavailable as e:
        db_info = f"Erreur lors de la récupération des informations : {e}"

    return templates.TemplateResponse(request, "index.html", {
        "total_views": total_views,
        "hostname": settings.hostname,
        "db_info": db_info,
        "framework_info": f"FastAPI {fastapi.__version__}",
        "server_info": settings.server_software,
        "os_info": platform.system(),
        "port_info": settings.port,
        "container_info": settings.container_name,
    })


@router.get("/health")
def health(request: Request):
    context = request.app.state.context
    report = check_readiness(context.dependencies, context.started_at)
    return JSONResponse(status_code=200 if report.healthy else 503, content=report.to_dict())


@router.get("/api/users")
def list_users(db: Session = Depends(get_db)):
    try:
        users = db.scalars(select(User).order_by(User.created_at.desc(), User.id.desc())).all()
    except SQLAlchemyError as e:
        logger.error("Failed to list users: %s", e)
        return JSONResponse(status_code=500, content={"error": str(e)})

    return [
        {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "created_at": user.created_at.isoformat() if user.created_at else None,
        }
        for user in users
    ]


@router.post("/api/users", response_model=UserCreated)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    user = User(username=payload.username, email=payload.email)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return JSONResponse(status_code=409, content={"error": "Username or email already exists"})
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to create user: %s", e)
        return JSONResponse(status_code=500, content={"error": str(e)})

    return UserCreated(id=user.id, username=user.username, email=user.email)


@router.get("/api/cache-test")
def cache_test(request: Request):
    cache = request.app.state.context.cache

    # Essayer d'abord le cache
    try:
        cached = cache.get(CACHE_TEST_KEY)
    except CacheUnavailable as e:
        logger.warning("Cache unavailable, skipping lookup: %s", e)
        cached = None

    if cached:
        try:
            data = json.loads(cached)
        except ValueError:
            logger.warning("Ignoring malformed cached value for %s: %r", CACHE_TEST_KEY, cached)
        else:
            logger.info("Data loaded from cache")
            return {"source": "cache", "data": data, "timestamp": _now_iso()}

    # Sinon, simuler une requête lente en base
    logger.info("Data loaded from database")
    data = {
        "message": "This data was loaded from the database",
        "generated": _now_iso(),
        "value": random.random(),
    }
    try:
        cache.setex(CACHE_TEST_KEY, CACHE_TEST_TTL, json.dumps(data))
    except CacheUnavailable as e:
        logger.warning("Cache unavailable, result not cached: %s", e)

    return {"source": "database", "data": data, "timestamp": _now_iso()}


def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error("Database unavailable: %s", exc)
    if request.url.path.startswith("/api/"):
        return JSONResponse(status_code=500, content={"error": str(exc)})
    return PlainTextResponse("Server error", status_code=500)


def create_app(settings=None, context=None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_settings = settings or load_settings()
        logging.basicConfig(
            level=app_settings.log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

        owns_context = context is None
        app_context = context or AppContext.from_settings(app_settings)
        # Les tentatives de création des tables bloquent : hors de la boucle
        await run_in_threadpool(app_context.startup, with_demo_users=app_settings.seed_demo_users)

        app.state.settings = app_settings
        app.state.context = app_context
        logger.info("Serving on port %s (host %s)", app_settings.port, app_settings.hostname)
        try:
            yield
        finally:
            logger.info("Shutting down...")
            if owns_context:
                app_context.close()

    app = FastAPI(lifespan=lifespan)
    app.include_router(router)
    app.add_exception_handler(StoreUnavailable, store_unavailable_handler)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
