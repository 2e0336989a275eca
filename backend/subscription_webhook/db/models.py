from datetime import datetime
from datetime import timezone as tz

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utc_now():
    return datetime.now(tz.utc)


class User(Base):
    """
    User record owned by the signup flow.

    The webhook receiver only ever updates the ``subscription_*`` columns.
    """

    __tablename__ = "users"
    id = Column(String, primary_key=True)
    email = Column(String, nullable=True)
    subscription_status = Column(String, nullable=False, default="unknown")
    subscription_plan = Column(String, nullable=True)
    subscription_validity = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True)


# Dotted update paths accepted by crud.update_user_fields
FIELD_COLUMNS = {
    "subscription.status": User.subscription_status,
    "subscription.plan": User.subscription_plan,
    "subscription.validity": User.subscription_validity,
}
