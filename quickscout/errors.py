"""Custom exception types for QuickScout."""

from __future__ import annotations

from typing import Optional


class _ScoutError(Exception):
    """Base class carrying the session/storefront context of a failure."""

    default_message = "QuickScout operation failed."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        session_id: Optional[str] = None,
        platform: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        self.message = message or self.default_message
        self.session_id = session_id
        self.platform = platform
        self.url = url
        super().__init__(self.message)

    def __str__(self) -> str:
        context_parts: list[str] = []
        if self.session_id:
            context_parts.append(f"session={self.session_id}")
        if self.platform:
            context_parts.append(f"platform={self.platform}")
        if self.url:
            context_parts.append(f"url={self.url}")
        context = ", ".join(context_parts)
        return f"{self.message} ({context})" if context else self.message


class ResourceExhausted(_ScoutError):
    """Raised when a browser process or page cannot be allocated."""

    default_message = "Unable to allocate browser resources."


class NavigationTimeout(_ScoutError):
    """Raised when a storefront page does not finish loading in time."""

    default_message = "Navigation timed out."


class ElementTimeout(_ScoutError):
    """Raised when an expected element does not render in time."""

    default_message = "Timed out waiting for element."


class SessionClosed(_ScoutError):
    """Raised when an operation targets a session that has been torn down."""

    default_message = "Session is closed."
