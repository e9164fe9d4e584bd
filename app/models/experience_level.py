import sqlmodel

from ._base import BaseModel


class ExperienceLevel(BaseModel, table=True):
    __tablename__: str = "experience_levels"

    level: int = sqlmodel.Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    min_experience: int
    max_experience: int
