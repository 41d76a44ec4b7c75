"""``python -m src``: serve the API with uvicorn on the uvloop event loop."""

import uvicorn

from config.settings import settings

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        loop="uvloop",
        log_level=settings.LOG_LEVEL.lower(),
    )
