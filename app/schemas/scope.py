# app/schemas/scope.py
from pydantic import BaseModel, model_validator
from typing import Optional


class ScopeOut(BaseModel):
    subsidiary_id: Optional[int]
    all_subsidiaries: bool
    accessible_subsidiaries: list[int]
    permissions: dict[int, str]


class ScopeSelect(BaseModel):
    subsidiary_id: Optional[int] = None
    all_subsidiaries: bool = False

    @model_validator(mode="after")
    def _one_target(self):
        if self.all_subsidiaries == (self.subsidiary_id is not None):
            raise ValueError("Provide either subsidiary_id or all_subsidiaries=true")
        return self
