from toolchat.domain.ports.model_capability import ModelCapability, ModelEvent, ModelEventType
from toolchat.domain.ports.repositories import SessionRepositoryPort

__all__ = ["ModelCapability", "ModelEvent", "ModelEventType", "SessionRepositoryPort"]
