"""Cross-origin access for the web frontend."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pledgetrack.config import Settings

# read by the frontend to tell "no data yet" from "database not initialized"
EXPOSED_HEADERS = ["X-Request-Id", "X-Empty-Reason", "X-RateLimit-Limit", "X-RateLimit-Remaining"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    origins = list(settings.cors_origins)
    if not origins:
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # browsers reject credentials with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-User-Id", "X-Request-Id"],
        expose_headers=EXPOSED_HEADERS,
    )
