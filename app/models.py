from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class Task(Base):
    __tablename__ = "todos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String, nullable=False, default="Untitled")
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # nullable: rows written by other clients may leave it empty
    description: Mapped[str | None] = mapped_column(String, default="")

    def __repr__(self) -> str:
        return f"<Task {self.id} {self.title!r}>"


class User(Base):
    __tablename__ = "Users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    password: Mapped[str] = mapped_column(String, nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.id} {self.name!r}>"
