"""
Cashier Terminal Application

Checkout and payment orchestration for the cafe point of sale.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from .routes import terminal_router, checkout_router
from .routes.terminal import shutdown
from .core.config import settings
from .core.session import session_manager
from .services.backend_client import BackendError, PermissionDeniedError, SessionExpiredError
from .services.errors import CheckoutError

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Cashier terminal starting up...")
    logger.info(f"Backend URL: {settings.backend_base_url}")
    logger.info(f"Backend credential configured: {settings.backend_configured}")

    yield

    logger.info("Cashier terminal shutting down...")
    await shutdown()


# Create FastAPI app
app = FastAPI(
    title="Cashier Terminal",
    description="Checkout and payment orchestration for the cafe point of sale",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(terminal_router)
app.include_router(checkout_router)


@app.exception_handler(CheckoutError)
async def checkout_error_handler(request: Request, exc: CheckoutError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError):
    if isinstance(exc, (SessionExpiredError, PermissionDeniedError)):
        status_code = exc.status_code
    else:
        status_code = 502
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.get("/")
async def home():
    return {
        "message": "Cashier Terminal API",
        "docs": "/docs",
        "endpoints": {
            "sessions": "/api/terminal/sessions",
            "discounts": "/api/terminal/discounts",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "cashier-terminal",
        "backend_configured": settings.backend_configured,
        "active_sessions": len(session_manager.sessions),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pos_client.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
