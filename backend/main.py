"""Entry point for running the study organizer API with uvicorn."""

import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

if __name__ == "__main__":
    # Run from the repository root: HOST, PORT and RELOAD override the defaults
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "0").lower() in {"1", "true", "yes"}

    uvicorn.run(
        "backend.src.api.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=port,
        reload=reload,
    )
