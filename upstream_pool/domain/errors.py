"""Upstream error taxonomy."""
from typing import Optional


class UpstreamError(Exception):
    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Unknown Upstream Error")


class NoUpstreamError(UpstreamError):
    """No candidate upstream could be selected for a group."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "No Upstream")
