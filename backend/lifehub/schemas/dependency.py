from pydantic import BaseModel

from lifehub.models import DependencyType


class DependencyCreate(BaseModel):
    """Schema for creating a new dependency."""
    task_id: str             # The dependent task
    depends_on_task_id: str  # The prerequisite task
    type: DependencyType = DependencyType.BLOCKS
