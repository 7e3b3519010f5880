"""
Alt Text Generator entry point.

Run with: uvicorn main:app --reload
or:       python main.py (binds to the host/port from config.yaml)
"""
from alt_text.api.main import app
from alt_text.core.config import settings

__all__ = ["app"]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
