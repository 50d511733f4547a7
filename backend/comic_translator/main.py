"""FastAPI application entry point"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from .config import settings
from .errors import ComicTranslatorError
from .api.routes import uploads_router, analysis_router, sessions_router, storage_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Comic Translator API",
    description="Extract and translate comic page text with vision LLMs, organised into sessions",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ComicTranslatorError)
async def comic_translator_error_handler(request: Request, exc: ComicTranslatorError):
    """Render service errors as ``{"error": ...}`` with their status code"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include routers
app.include_router(uploads_router, prefix="/api")
app.include_router(analysis_router, prefix="/api")
app.include_router(sessions_router, prefix="/api")
app.include_router(storage_router, prefix="/api")


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "OK", "message": "Comic Translator Backend is running"}


@app.on_event("startup")
async def startup_event():
    """Startup tasks"""
    logger.info("Starting Comic Translator API")
    logger.info(f"Storage directory: {settings.storage_dir}")
    logger.info(f"Default provider: {settings.default_provider} ({settings.default_model})")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "comic_translator.main:app",
        host="0.0.0.0",
        port=settings.port,
    )
