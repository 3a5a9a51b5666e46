"""Display aggregates built on a minimal reactive node graph."""

from .client import ClientAggregate, ClientOutput
from .graph import Node
from .task import TaskAggregate, TaskOutput, TaskState

__all__ = [
    "ClientAggregate",
    "ClientOutput",
    "Node",
    "TaskAggregate",
    "TaskOutput",
    "TaskState",
]
