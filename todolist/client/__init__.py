from todolist.client.gateway import TaskGateway
from todolist.client.store import TaskStore

__all__ = ["TaskGateway", "TaskStore"]
