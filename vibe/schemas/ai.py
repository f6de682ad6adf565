from typing import Optional
from pydantic import BaseModel


class AIGenerateRequest(BaseModel):
    """Skip the cached value when regenerate is set"""
    regenerate: bool = False


class LabelSuggestRequest(BaseModel):
    title: str
    description: Optional[str] = None


class DuplicateCheckRequest(BaseModel):
    title: str


class DuplicateOut(BaseModel):
    id: int
    title: str
    similarity: float
