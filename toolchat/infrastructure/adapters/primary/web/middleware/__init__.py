from toolchat.infrastructure.adapters.primary.web.middleware.exception_handlers import (
    ErrorResponse,
    configure_exception_handlers,
)

__all__ = ["ErrorResponse", "configure_exception_handlers"]
