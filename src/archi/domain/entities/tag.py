"""
Tag domain entity.
"""

import uuid
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Tag:
    """A free-form label that can be associated with archives."""
    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Tag name must be a non-empty string")

        if not isinstance(self.id, str) or not self.id:
            raise ValueError("Tag ID must be a non-empty string")

    def __str__(self) -> str:
        return self.name
