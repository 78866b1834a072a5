"""Base types shared by every domain model."""

import uuid
from abc import ABC
from dataclasses import dataclass, field


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass(kw_only=True)
class Entity(ABC):
    """
    Something with an identity that outlives its contents.

    Messages and sessions are entities: two messages with the same id are the
    same message even if one of them has grown more parts since.
    """

    id: str = field(default_factory=new_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class DomainException(Exception):
    """Base exception for all domain errors."""
