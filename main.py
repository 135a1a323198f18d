import os

import uvicorn

from style_engine.core.app import app  # noqa: F401
from style_engine.core.config import settings

if __name__ == "__main__":
    PORT = os.getenv("PORT", settings.PORT)
    reload = settings.APP_ENV == "development"
    uvicorn.run("style_engine.core.app:app", host="0.0.0.0", port=int(PORT), reload=reload)
