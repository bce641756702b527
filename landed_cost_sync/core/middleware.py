"""
CORS middleware — lets the operator UI call the sync routes.

Origins come from CORS_ALLOW_ORIGINS. Credentials are only allowed for an
explicit origin list; browsers reject them with a wildcard origin.
Version: 1.0.0
"""
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from landed_cost_sync.core.config import settings


def apply_cors(app: FastAPI, origins: Optional[List[str]] = None) -> None:
    origins = origins if origins is not None else settings.cors_allow_origins
    wildcard = not origins or "*" in origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else origins,
        allow_credentials=not wildcard,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )
