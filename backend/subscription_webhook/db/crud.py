import logging

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from subscription_webhook.db import models

logger = logging.getLogger(__name__)


class StoreError(Exception):
    pass


class RecordNotFound(StoreError):
    pass


def get_user(db: Session, user_id: str) -> models.User | None:
    return db.get(models.User, user_id)


def update_user_fields(db: Session, user_id: str, fields: dict[str, str]) -> None:
    """
    Apply a partial update to an existing user record.

    ``fields`` is keyed by dotted path (``subscription.status``...). Only the
    named columns change. The record is never created here: a missing user
    raises RecordNotFound.
    """
    values = {}
    for path, value in fields.items():
        column = models.FIELD_COLUMNS.get(path)
        if column is None:
            raise ValueError(f"Unknown user field: {path}")
        values[column.key] = value
    values["updated_at"] = models.utc_now()

    stmt = update(models.User).where(models.User.id == user_id).values(**values)
    try:
        result = db.execute(stmt)
        if result.rowcount == 0:
            db.rollback()
            raise RecordNotFound(f"User {user_id} does not exist")
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error updating user {user_id}: {e}")
        raise StoreError(str(e)) from e
