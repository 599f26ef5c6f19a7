import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class DependencyType(str, Enum):
    BLOCKS = "blocks"
    REQUIRES = "requires"
    SUGGESTS = "suggests"

    @property
    def is_gating(self) -> bool:
        """``blocks`` and ``requires`` must be satisfied before completion."""
        return self is not DependencyType.SUGGESTS


class Dependency(BaseModel):
    """
    Outgoing edge of a task in the dependency graph.

    task_id depends on depends_on_task_id:
    "The prerequisite (depends_on_task_id) must be completed before
    the dependent (task_id) can be completed" - for gating types only.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    task_id: str
    depends_on_task_id: str
    type: DependencyType = DependencyType.BLOCKS
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_gating(self) -> bool:
        return self.type.is_gating
