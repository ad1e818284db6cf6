"""Task CRUD endpoints."""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import Select, delete, select
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..errors import NotFoundError
from ..telemetry import get_meter, get_tracer


logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)
meter = get_meter(__name__)

todos_created = meter.create_counter(
    name="todos.created",
    description="Tasks created",
    unit="1",
)

router = APIRouter(prefix="/todos", tags=["todos"])


def locked_todo(todo_id: int) -> Select:
    return select(models.Task).where(models.Task.id == todo_id).with_for_update()


@router.get("", response_model=list[schemas.TaskOut])
def list_todos(db: Session = Depends(get_db)):
    return db.scalars(select(models.Task).order_by(models.Task.id)).all()


@router.post("", response_model=schemas.TaskOut, status_code=status.HTTP_201_CREATED)
def create_todo(todo: schemas.TaskCreate, db: Session = Depends(get_db)):
    """Insert a task; omitted fields already carry their defaults."""
    with tracer.start_as_current_span("todo.create") as span:
        db_todo = models.Task(**todo.model_dump())
        db.add(db_todo)
        db.commit()
        db.refresh(db_todo)

        span.set_attribute("todo.id", db_todo.id)
        todos_created.add(1)
        logger.info("Todo created: %s", db_todo.id)
        return db_todo


@router.patch("/{todo_id}", response_model=schemas.TaskOut)
def update_todo(todo_id: int, todo: schemas.TaskUpdate, db: Session = Depends(get_db)):
    """Change only the supplied fields of a task.

    Omitted (or null) fields keep their stored value. The row is locked for
    the rest of the transaction so a concurrent delete cannot slip in between
    the lookup and the write.
    """
    db_todo = db.scalars(locked_todo(todo_id)).first()
    if db_todo is None:
        raise NotFoundError("Todo")

    for field, value in schemas.changed_fields(todo).items():
        setattr(db_todo, field, value)
    db.commit()
    db.refresh(db_todo)
    return db_todo


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_todo(todo_id: int, db: Session = Depends(get_db)):
    result = db.execute(delete(models.Task).where(models.Task.id == todo_id))
    db.commit()
    if result.rowcount == 0:
        logger.debug("Delete of missing todo %s", todo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
