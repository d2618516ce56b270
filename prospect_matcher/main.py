from datetime import datetime

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from prospect_matcher.routers import matcher

# Import logging and middleware
from prospect_matcher.utils.logging_config import configure_for_environment, get_logger
from prospect_matcher.utils.exceptions import MatcherBaseException
from prospect_matcher.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    PerformanceMiddleware,
    matcher_exception_handler,
    validation_exception_handler,
)

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)

SERVICE_NAME = "ProspectMatcher Agent"
VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info(f"{SERVICE_NAME} starting up...")

    try:
        from prospect_matcher.services.db import init_indexes
        await init_indexes()
        logger.info("Database indexes initialized successfully")
    except Exception as e:
        logger.warning(f"Database index initialization had issues: {e}")
        logger.info("Application will continue - duplicate evaluations are only prevented by the upsert check")

    logger.info(f"{SERVICE_NAME} startup completed")

    yield

    logger.info(f"{SERVICE_NAME} shutting down...")


app = FastAPI(title="Prospect Matcher API", version=VERSION, lifespan=lifespan)

app.add_exception_handler(MatcherBaseException, matcher_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Last added runs first: ExceptionHandlerMiddleware is the outermost layer
app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0)
app.add_middleware(ExceptionHandlerMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
@app.head("/")
async def root():
    """Service description and endpoint index"""
    return {
        "name": SERVICE_NAME,
        "version": VERSION,
        "description": "Intelligent candidate-to-position matching using LLM evaluation",
        "endpoints": {
            "health": "GET /health",
            "match": "POST /agents/prospect-matcher/match",
            "create": "POST /agents/prospect-matcher/create",
            "delete": "DELETE /agents/prospect-matcher/delete",
            "search": "GET /agents/prospect-matcher/search",
            "prospects": "GET /agents/prospect-matcher/prospects",
            "positions": "GET /agents/prospect-matcher/positions",
            "evaluations": "GET /agents/prospect-matcher/evaluations",
        },
    }


@app.get("/health")
@app.head("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat(), "service": SERVICE_NAME}


app.include_router(matcher.router)

logger.info("Prospect Matcher API initialized successfully")
