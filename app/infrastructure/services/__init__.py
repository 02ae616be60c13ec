"""Infrastructure implementations of application service interfaces."""

from app.infrastructure.services.message_service import LogOnlyMessageService

__all__ = [
    "LogOnlyMessageService",
]
