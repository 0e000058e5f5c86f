"""Main FastAPI application."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from asklinc.assistant import routes as assistant_routes
from asklinc.config import settings
from asklinc.middleware import setup_rate_limiting

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI app
app = FastAPI(
    title="AskLinc API",
    description="Privacy-preserving financial Q&A over tier-gated market data",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_rate_limiting(app)

# Include routers
app.include_router(assistant_routes.router, prefix=settings.API_V1_PREFIX, tags=["Assistant"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "AskLinc API",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "asklinc.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
