"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import meta, og
from db import init_db
from settings import settings


# Create app
app = FastAPI(
    title=f"{settings.SITE_NAME} Share Card API",
    description="Social preview images and page metadata",
    version="0.1.0",
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Public root: fonts, blog images and precomputed cards
public_path = settings.SHARE_CARD_PUBLIC_ROOT
public_path.mkdir(parents=True, exist_ok=True)
app.mount("/static-public", StaticFiles(directory=str(public_path)), name="static-public")

# Include routers
app.include_router(og.router, prefix="/api/og", tags=["og"])
app.include_router(meta.router, prefix="/api/meta", tags=["meta"])


@app.on_event("startup")
def startup_event():
    """Initialize database tables on startup."""
    init_db()


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": f"{settings.SITE_NAME} Share Card API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
