import asyncio
import uvicorn
from appbase_backend.settings import settings
from appbase_backend.server import startup_logic

if __name__ == "__main__":

    if settings.DEBUG_MODE != "production":
        asyncio.run(startup_logic())

    uvicorn.run("appbase_backend.server:app", host="0.0.0.0", port=8000, log_level=settings.LOG_LEVEL.lower(), reload=settings.DEBUG_MODE != "production", workers=1)
