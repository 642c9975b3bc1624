"""
Noteport Server Entry Point

Run with: python main.py
Or with uvicorn: uvicorn app:app --reload

Host and port come from NOTEPORT_HOST / NOTEPORT_PORT; the log level is
shared with the application config (NOTEPORT_LOG_LEVEL).
"""

import os

import uvicorn

from noteport.config import Config

if __name__ == "__main__":
    config = Config.from_env()
    is_dev = os.getenv("ENVIRONMENT", "development") == "development"

    uvicorn.run(
        "app:app",
        host=os.getenv("NOTEPORT_HOST", "0.0.0.0"),
        port=int(os.getenv("NOTEPORT_PORT", "8000")),
        reload=is_dev,
        log_level=config.logging.level.lower(),
    )
