"""Run the identity service with uvicorn: ``python -m identity``."""

import uvicorn

from identity.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "identity.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
