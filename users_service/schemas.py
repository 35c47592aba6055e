from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    name: str = ""


class User(BaseModel):
    id: str
    name: str = ""
    registered_objects: int = Field(default=0, ge=0)
