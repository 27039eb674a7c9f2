import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from jamroom import __version__
from jamroom.api.http import health_router, users_router, rooms_router, loops_router
from jamroom.core.config import settings
from jamroom.core.db import init_models
from jamroom.core.errors import JamRoomError, InternalError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    logger.info("Jam room API started")
    yield


app = FastAPI(
    title="JamRoom",
    description="Совместные джем-комнаты: запись лупов и синхронизация микса",
    version=__version__,
    lifespan=lifespan
)

# Настройка CORS для работы с frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(JamRoomError)
async def jamroom_error_handler(request: Request, exc: JamRoomError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    field = ".".join(str(part) for part in errors[0]["loc"] if part != "body") if errors else ""
    message = f"Invalid {field}" if field else "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": message})


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    # Детали сбоя хранилища остаются только в логе
    logger.exception(f"Store failure on {request.method} {request.url.path}")
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


# Подключаем роутеры
app.include_router(health_router)
app.include_router(users_router)
app.include_router(rooms_router)
app.include_router(loops_router)


@app.get("/")
async def root():
    """Корневой эндпоинт"""
    return {
        "message": "JamRoom API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }
