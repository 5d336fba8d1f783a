"""Exceptions raised by the Supabase plugin."""

from __future__ import annotations


class SupabaseError(Exception):
    """Raised when the Supabase REST API rejects a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SupabaseConfigError(SupabaseError):
    """Raised when Supabase credentials are missing."""

    def __init__(self, message: str = "Supabase credentials not configured"):
        super().__init__(message)
