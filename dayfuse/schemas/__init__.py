from .base import CamelModel
from .task import TaskEnvelope, TaskListResponse, TaskResponse

__all__ = ["CamelModel", "TaskEnvelope", "TaskListResponse", "TaskResponse"]
