from pydantic import BaseModel, Field


class VisitCount(BaseModel):
    count: int = Field(ge=0)


__all__ = ["VisitCount"]
