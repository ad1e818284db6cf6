"""User registration, update and removal."""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse
from sqlalchemy import Select, delete, select
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..errors import NotFoundError
from ..telemetry import get_meter, get_tracer


logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)
meter = get_meter(__name__)

users_registered = meter.create_counter(
    name="users.registered",
    description="Users registered",
    unit="1",
)

router = APIRouter(tags=["users"])


def locked_user(user_id: int) -> Select:
    return select(models.User).where(models.User.id == user_id).with_for_update()


@router.post("/register", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
def create_user(user: schemas.UserCreate, db: Session = Depends(get_db)):
    with tracer.start_as_current_span("user.register") as span:
        db_user = models.User(name=user.name, password=user.password)
        db.add(db_user)
        db.commit()
        db.refresh(db_user)

        span.set_attribute("user.id", db_user.id)
        users_registered.add(1)
        logger.info("User registered: %s", db_user.id)
        return db_user


@router.patch("/user/{user_id}", response_model=schemas.UserOut)
def update_user(user_id: int, user: schemas.UserUpdate, db: Session = Depends(get_db)):
    """Change only the supplied fields of a user.

    Lookup and write share one transaction with the row locked, so a
    missing user is reported as 404 and never recreated.
    """
    db_user = db.scalars(locked_user(user_id)).first()
    if db_user is None:
        raise NotFoundError("User")

    for field, value in schemas.changed_fields(user).items():
        setattr(db_user, field, value)
    db.commit()
    db.refresh(db_user)
    return db_user


@router.delete("/users/{user_id}", response_class=PlainTextResponse)
def delete_user(user_id: int, db: Session = Depends(get_db)):
    # the affected-row count doubles as the existence check
    result = db.execute(delete(models.User).where(models.User.id == user_id))
    db.commit()
    if result.rowcount == 0:
        raise NotFoundError("User")

    logger.info("User deleted: %s", user_id)
    return "User successfully deleted"
