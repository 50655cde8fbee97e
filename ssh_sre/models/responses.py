"""Common API response models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    version: str
    ssh_connected: bool
    platform: Optional[str] = None
    platform_name: Optional[str] = None


class ReconnectResponse(BaseModel):
    success: bool
    connected: bool
    error: Optional[str] = None


class DiagnosticResponse(BaseModel):
    action: str
    output: str
    success: bool
    error: Optional[str] = None
