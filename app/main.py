"""Repo-root Uvicorn entrypoint.

Allows running the backend from the repo root:

    uvicorn app.main:app --reload

This simply re-exports the FastAPI app defined in `backend/shiftboard/main.py`.
"""

from backend.shiftboard.main import app  # re-export
