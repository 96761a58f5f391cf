"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response body for the health check endpoint."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (dev or prod)")
    database: Literal["connected", "disconnected"] = Field(
        description="Whether a trivial query against the session store succeeded",
    )
    session_cleanup: Literal["scheduled", "disabled"] = Field(
        description="Whether the background sweep of expired sessions is running",
    )
