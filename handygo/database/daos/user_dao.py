"""
User DAO

Purpose
-------
Thin data-access layer for the `User` ORM entity (the credential store). Provides:
- Creation (the password arrives already hashed)
- Lookup by id, by case-insensitive username, by normalized email
- Sparse profile updates

Design
------
- The DAO expects an active SQLAlchemy `Session` supplied by the caller.
- Business rules (domain policy, verification codes, uniqueness messages) live
  in `handygo.database.core.funcs`; the DAO focuses on persistence.
- `createUser` flushes so unique-constraint violations surface as
  `IntegrityError` inside the caller's transaction, where they are translated
  into `ConflictError`.

Usage
-----
.. code-block:: python

    from handygo.database.config.connection_engine import SessionFactory
    from handygo.database.entities.user import User
    from handygo.database.daos.user_dao import UserDao

    dao = UserDao()
    with SessionFactory() as session:
        dao.createUser(session, User(username="alice", email="alice@aalto.fi", password_hash=digest))
        session.commit()

        users = dao.fetchUserByEmail(session, "alice@aalto.fi")   # list[User], at most one
        same = dao.fetchUser(session, "ALICE")                    # case-insensitive

Error Handling
--------------
- Each method logs `Error in UserDao.<method>` and re-raises.
"""

import logging
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from handygo.database.entities.user import PROFILE_FIELDS, User

logger = logging.getLogger(__name__)


class UserDao:
    """
    Data Access Object (DAO) for managing User entities.
    """

    def createUser(self, session: Session, user_data: User) -> User:
        """
        Stage and flush a new user.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        user_data : User
            User entity whose `password_hash` is already set.

        Returns
        -------
        User
            The persisted entity.

        Raises
        ------
        sqlalchemy.exc.IntegrityError
            If the email or username is already taken.
        """
        try:
            session.add(user_data)
            session.flush()
            return user_data
        except Exception as e:
            logger.error(f"Error in UserDao.createUser. Error Message: {e}")
            raise e

    def fetchUser(self, session: Session, username: str):
        """
        Fetch a user by username, ignoring case.

        Returns
        -------
        list[User]
            A list containing the matching user (at most one due to limit(1)).
        """
        try:
            users = (
                session.query(User)
                .filter(func.lower(User.username) == username.strip().lower())
                .limit(1)
                .all()
            )
            return users
        except Exception as e:
            logger.error(f"Error in UserDao.fetchUser. Error Message: {e}")
            raise e

    def fetchUserByEmail(self, session: Session, email: str):
        """
        Fetch a user by email. Emails are stored normalized, the lookup
        normalizes its argument and compares case-insensitively.

        Returns
        -------
        list[User]
            A list containing the matching user (at most one due to limit(1)).
        """
        try:
            users = (
                session.query(User)
                .filter(func.lower(User.email) == email.strip().lower())
                .limit(1)
                .all()
            )
            return users
        except Exception as e:
            logger.error(f"Error in UserDao.fetchUserByEmail. Error Message: {e}")
            raise e

    def fetchUserById(self, session: Session, user_id: UUID) -> User | None:
        try:
            return session.get(User, user_id)
        except Exception as e:
            logger.error(f"Error in UserDao.fetchUserById. Error Message: {e}")
            raise e

    def updateUserProfile(self, session: Session, user_id: UUID, fields: dict) -> User | None:
        """
        Apply a sparse profile update.

        Only keys present in `fields` and listed in `PROFILE_FIELDS` are
        written; an explicit empty string is written as-is.

        Returns
        -------
        User | None
            The updated user, or None when no user has that id.
        """
        try:
            user = session.get(User, user_id)
            if user is None:
                return None
            for key, value in fields.items():
                if key in PROFILE_FIELDS:
                    setattr(user, key, value)
            session.flush()
            return user
        except Exception as e:
            logger.error(f"Error in UserDao.updateUserProfile. Error Message: {e}")
            raise e
