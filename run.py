"""
Entry point to run the FastAPI application.

This script starts the web server:
    python run.py
"""

import uvicorn
from app.core.config import settings

if __name__ == "__main__":
    # Start the web server
    # - "app.main:app" = import app from app.main module
    # - host="0.0.0.0" = listen on all network interfaces
    # - port = from our settings (default 5000)
    # - reload = auto-restart when code changes (only in debug mode)
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,  # Auto-reload only in development
        log_level="debug" if settings.debug else "info"
    )
