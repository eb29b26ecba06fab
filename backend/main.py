from __future__ import annotations

import os

import uvicorn

from backend.app.main import app


def run() -> None:
    """Serve the study mood tracker API on the port given by ``PORT``."""

    port = int(os.getenv("PORT", 8000))
    host = os.getenv("HOST", "0.0.0.0")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
