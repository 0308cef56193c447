"""
ASGI entry point.

Run with:
    uvicorn asgi:app --port 3001
or:
    python asgi.py          (binds 0.0.0.0 on PORT)
"""

import uvicorn

from app import create_app
from config import AppSettings

settings = AppSettings()
app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
