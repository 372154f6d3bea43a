from __future__ import annotations

import uvicorn

from mirror_wars.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.ws_host,
        port=settings.ws_port,
        log_level=settings.log_level.lower(),
        reload=settings.reload,
        reload_dirs=["backend"] if settings.reload else None,
    )
