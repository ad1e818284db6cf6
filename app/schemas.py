from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator


class TaskCreate(BaseModel):
    title: str = "Untitled"
    completed: bool = False
    description: str = ""

    @field_validator("title", "completed", "description", mode="before")
    @classmethod
    def null_means_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return cls.model_fields[info.field_name].default
        return v


class TaskUpdate(BaseModel):
    title: str | None = None
    completed: bool | None = None
    description: str | None = None


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    completed: bool
    description: str | None


class UserCreate(BaseModel):
    name: str
    password: str


class UserUpdate(BaseModel):
    name: str | None = None
    password: str | None = None


class UserOut(BaseModel):
    """Public view of a user. The password is never part of a response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


def changed_fields(payload: BaseModel) -> dict[str, Any]:
    """Fields the client actually supplied; an explicit null counts as omitted."""
    return payload.model_dump(exclude_unset=True, exclude_none=True)
