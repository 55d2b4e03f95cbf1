from typing import Optional
from pydantic import BaseModel, Field


# ============================================================
# 1. Graph sessions
# ============================================================

class SessionCreate(BaseModel):
    source: str = "sample"
    include_act_flag: bool = False
    width: float = Field(800.0, gt=0)
    height: float = Field(600.0, gt=0)
    seed: Optional[int] = None


class HoverRequest(BaseModel):
    node_id: Optional[str] = None


class DragStart(BaseModel):
    node_id: str


class DragMove(BaseModel):
    x: float
    y: float


class ResizeRequest(BaseModel):
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)
