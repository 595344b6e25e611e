"""
Mock Backend Application

In-memory stand-in for the cafe backend: branch menus, sales and holds,
and GCash payment intents with a provider webhook.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from .config import settings
from .routes import menu_router, buy_router, gcash_router

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
    logger.info("Mock backend starting up...")
    if settings.auto_authorize_after is not None:
        logger.info(f"Payments auto-authorize after {settings.auto_authorize_after}s")
    yield
    logger.info("Mock backend shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Mock Cafe Backend",
    description="In-memory cafe backend for cashier terminal development",
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

# Include API routers
app.include_router(menu_router)
app.include_router(buy_router)
app.include_router(gcash_router)


@app.get("/")
async def home():
    return {
        "message": "Mock Cafe Backend API",
        "docs": "/docs",
        "endpoints": {
            "menu": "/api/menu",
            "buy": "/api/buy",
            "gcash": "/api/gcash",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "mock-backend"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "mock_backend.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
