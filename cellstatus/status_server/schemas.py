"""Response bodies for the HTTP API. Every body carries a success flag."""

from typing import List, Literal

from pydantic import BaseModel


class CellOut(BaseModel):
    number: int
    status: int


class StatsOut(BaseModel):
    total: int
    free: int
    occupied: int
    unavailable: int


class CellsResponse(BaseModel):
    success: Literal[True] = True
    data: List[CellOut]


class StatsResponse(BaseModel):
    success: Literal[True] = True
    data: StatsOut


class HealthResponse(BaseModel):
    success: Literal[True] = True
    message: str
    timestamp: str


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
