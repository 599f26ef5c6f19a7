from lifehub.schemas.task import TaskCreate, TaskUpdate, SubtaskCreate, TemplateCreate, TemplateInstantiate
from lifehub.schemas.dependency import DependencyCreate
from lifehub.schemas.time_entry import TrackingStart, TaskTimeRead
from lifehub.schemas.habit import HabitCreate, HabitUpdate, CheckinCreate, CompletionRateRead, StreakStatsRead
from lifehub.schemas.analytics import CollectRequest, CorrelationRead, SeriesPointRead

__all__ = [
    "TaskCreate",
    "TaskUpdate",
    "SubtaskCreate",
    "TemplateCreate",
    "TemplateInstantiate",
    "DependencyCreate",
    "TrackingStart",
    "TaskTimeRead",
    "HabitCreate",
    "HabitUpdate",
    "CheckinCreate",
    "CompletionRateRead",
    "StreakStatsRead",
    "CollectRequest",
    "CorrelationRead",
    "SeriesPointRead",
]
