"""Threading module with specialized thread pools."""

from .manager import (
    RecurringTask,
    Task,
    TaskResult,
    ThreadManager,
    ThreadPoolType,
)

__all__ = ['ThreadManager', 'ThreadPoolType', 'TaskResult', 'Task', 'RecurringTask']
