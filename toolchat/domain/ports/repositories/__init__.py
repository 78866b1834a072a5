from toolchat.domain.ports.repositories.session_repository import SessionRepositoryPort

__all__ = ["SessionRepositoryPort"]
