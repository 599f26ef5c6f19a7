from lifehub.models.dependency import Dependency, DependencyType
from lifehub.models.task import Task, TaskPriority, TaskStatus, Subtask, TaskTemplate, SubtaskTemplate
from lifehub.models.time_entry import TimeEntry
from lifehub.models.habit import Habit, WellnessCheckin, CorrelationSample
from lifehub.models.productivity import ProductivityDataPoint, WearableSample, FocusSession
from lifehub.models.kv import KeyValueRecord

__all__ = [
    "Dependency",
    "DependencyType",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "Subtask",
    "TaskTemplate",
    "SubtaskTemplate",
    "TimeEntry",
    "Habit",
    "WellnessCheckin",
    "CorrelationSample",
    "ProductivityDataPoint",
    "WearableSample",
    "FocusSession",
    "KeyValueRecord",
]
