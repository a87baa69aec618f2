"""
FastAPI Application

Main entry point for the climbing coach web API.
"""

from typing import Dict

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from climbcoach.api.dependencies import get_settings
from climbcoach.api.models.responses import ErrorResponse
from climbcoach.api.routes import assessments, programs, progress
from climbcoach.config import configure_logging
from climbcoach.errors import ConfigurationError, ValidationError

configure_logging(get_settings().log_level)

# Initialize FastAPI app
app = FastAPI(
    title="Climbing Coach API",
    description="Assessment scoring and constraint-checked 6-week training programs",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS configuration - allow frontend to access API
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",  # React dev server
        "http://localhost:5173",  # Vite dev server
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(assessments.router, prefix="/api", tags=["Assessments"])
app.include_router(programs.router, prefix="/api", tags=["Programs"])
app.include_router(progress.router, prefix="/api", tags=["Progress"])


@app.get("/")
async def root() -> Dict[str, str]:
    """Root endpoint - API information."""
    return {
        "name": "Climbing Coach API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "climbcoach-api"}


@app.exception_handler(ValidationError)
@app.exception_handler(ConfigurationError)
async def input_error_handler(request: Request, exc):
    """Reject invalid measurements or preferences, naming the field."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=type(exc).__name__, field=exc.field, message=str(exc)
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with consistent error format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "message": str(exc.detail)},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": str(exc),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "climbcoach.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
