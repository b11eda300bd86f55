"""FastAPI application setup for washcast."""

from fastapi import FastAPI

from .api import router as api_router

APP_TITLE = "Washcast"
APP_VERSION = "0.1.0"

app = FastAPI(title=APP_TITLE, version=APP_VERSION)


@app.get("/")
def service_info():
    """Describe the service; clients render their own UI."""
    return {"service": APP_TITLE, "version": APP_VERSION, "api": "/v1"}


# API routes
app.include_router(api_router, prefix="/v1")
