"""
Task DAO

Read-only access to the `Task` entity. Task CRUD lives in another service;
messaging only needs to know that a task exists.
"""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from handygo.database.entities.task import Task

logger = logging.getLogger(__name__)


class TaskDao:
    """
    Data Access Object (DAO) for marketplace tasks.
    """

    def fetchTaskById(self, session: Session, task_id: UUID) -> Task | None:
        try:
            return session.get(Task, task_id)
        except Exception as e:
            logger.error(f"Error in TaskDao.fetchTaskById. Error Message: {e}")
            raise e
