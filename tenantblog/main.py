from contextlib import asynccontextmanager
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
from .config import settings
from .db import get_db, ensure_indexes
from .errors import ApiError, api_error_handler, http_exception_handler, request_validation_handler, store_error_handler
from .logging_config import configure_logging, get_logger
from .routers import auth, blogs, sites

configure_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await ensure_indexes(await get_db())
    logger.info("tenantblog started")
    yield


app = FastAPI(title="tenantblog", lifespan=lifespan)
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(blogs.router, prefix="/blogs", tags=["blogs"])
app.include_router(sites.router, prefix="/sites", tags=["sites"])

app.add_exception_handler(ApiError, api_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(PyMongoError, store_error_handler)

# Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins = settings.CORS_ORIGINS,
    allow_credentials = True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {"message": "tenantblog API"}


def run():
    uvicorn.run("tenantblog.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
