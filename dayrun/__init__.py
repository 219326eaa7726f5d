from dayrun.executor import TaskCrash
from dayrun.registry import Runner, TaskId

__all__ = ["Runner", "TaskCrash", "TaskId"]
