from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exception_handlers import http_exception_handler, request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
import logging

from app.core.config import settings
from app.db.session import SessionLocal
from app.db.init_db import create_all_tables
from app.middleware.request_logging import RequestLoggingMiddleware
from app.modules.user_management.api.router import router as user_router
from app.modules.follows.api.router import router as follows_router
from app.modules.posts.api.router import router as posts_router
from app.modules.posts.comments.api.router import router as comments_router
from app.modules.posts.amens.api.router import router as amens_router
from app.modules.posts.reposts.api.router import router as reposts_router
from app.modules.messaging.api.router import router as conversations_router
from app.modules.notifications.api.router import router as notifications_router
from app.modules.notifications.services.pipeline import build_pipeline

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("app")

# Initialize the FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    exception_handlers={
        RequestValidationError: request_validation_exception_handler,
        HTTPException: http_exception_handler,
    },
    debug=settings.DEBUG,
    description="Notification fan-out, push delivery and live notification feed",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting server in {settings.ENVIRONMENT} mode")

    create_all_tables()

    # A pipeline set beforehand (tests, alternative push sender) is kept
    if getattr(app.state, "pipeline", None) is None:
        app.state.pipeline = build_pipeline(SessionLocal, settings)
    app.state.pipeline.install()
    logger.info("Notification pipeline installed")

@app.on_event("shutdown")
async def shutdown_event():
    pipeline = getattr(app.state, "pipeline", None)
    if pipeline is not None:
        pipeline.shutdown()

# Add middleware
app.add_middleware(RequestLoggingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(user_router, prefix=f"{settings.API_V1_STR}/users", tags=["users"])
app.include_router(follows_router, prefix=f"{settings.API_V1_STR}/follows", tags=["follows"])
app.include_router(posts_router, prefix=f"{settings.API_V1_STR}/posts", tags=["posts"])
app.include_router(comments_router, prefix=f"{settings.API_V1_STR}/posts/{{post_id}}/comments", tags=["comments"])
app.include_router(amens_router, prefix=f"{settings.API_V1_STR}/posts/{{post_id}}/amens", tags=["amens"])
app.include_router(reposts_router, prefix=f"{settings.API_V1_STR}/posts/{{post_id}}/reposts", tags=["reposts"])
app.include_router(conversations_router, prefix=f"{settings.API_V1_STR}/conversations", tags=["conversations"])
app.include_router(notifications_router, prefix=f"{settings.API_V1_STR}/notifications", tags=["notifications"])

@app.get("/")
async def root():
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "documentation": "/docs" if settings.DEBUG else None,
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
