from __future__ import annotations

from datetime import date as Date
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, conint, constr

from kleurenwiezen.bids import BidKind


class ErrorBody(BaseModel):
    code: str
    message: str
    details: dict | None = None


class BidInfo(BaseModel):
    kind: BidKind
    label: str
    min_winners: int
    max_winners: int
    bid_class: Literal["formula", "fixed", "misery"]
    uses_overtricks: bool


class MultiplierFlags(BaseModel):
    passed: bool = False
    passed_twice: bool = False
    full_round: bool = False

    def factor(self) -> int:
        return (2 if self.passed else 1) * (4 if self.passed_twice else 1) * (2 if self.full_round else 1)


class RoundInput(BaseModel):
    bid: BidKind
    winners: list[UUID] = Field(default_factory=list)
    overtricks: int = 0
    multiplier: int = 1
    flags: MultiplierFlags = Field(default_factory=MultiplierFlags)
    players: list[UUID] | None = None

    def effective_multiplier(self) -> int:
        return max(1, self.multiplier) * self.flags.factor()


class ScorePreviewResponse(BaseModel):
    status: Literal["ok", "invalid"]
    multiplier: int
    points: dict[UUID, int] = Field(default_factory=dict)
    error: ErrorBody | None = None


class PlayerCreateRequest(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=64)


class PlayerOut(BaseModel):
    id: UUID
    name: str


class GroupCreateRequest(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=128)
    owner: str | None = None
    players: list[constr(strip_whitespace=True, min_length=1, max_length=64)] = Field(default_factory=list)


class GroupResponse(BaseModel):
    id: UUID
    name: str
    owner: str | None = None
    join_code: str
    players: list[PlayerOut] = Field(default_factory=list)


class SessionCreateRequest(BaseModel):
    date: Date | None = None
    title: str | None = None


class SessionOut(BaseModel):
    id: UUID
    date: Date
    title: str


class RoundOut(BaseModel):
    id: UUID
    round_no: conint(ge=1)
    bid: BidKind
    label: str
    overtricks: int
    multiplier: int
    points: dict[UUID, int]


class RecordRoundResponse(BaseModel):
    status: Literal["ok"]
    round: RoundOut


class SessionDetailResponse(BaseModel):
    session: SessionOut
    players: list[PlayerOut]
    rounds: list[RoundOut] = Field(default_factory=list)
    totals: dict[UUID, int] = Field(default_factory=dict)
    next_round_no: int


class NoteRequest(BaseModel):
    body: str


class NoteOut(BaseModel):
    id: UUID
    body: str
    created_at: datetime


class PlayerSeries(BaseModel):
    player_id: UUID
    name: str
    values: list[int] = Field(default_factory=list)


class ChartSeries(BaseModel):
    labels: list[str] = Field(default_factory=list)
    series: list[PlayerSeries] = Field(default_factory=list)


class SessionStats(BaseModel):
    session: SessionOut
    totals: dict[UUID, int]
    round_count: int
    bid_counts: dict[BidKind, int]


class OverviewResponse(BaseModel):
    players: list[PlayerOut]
    sessions: list[SessionStats] = Field(default_factory=list)
    totals: dict[UUID, int] = Field(default_factory=dict)
    round_count: int = 0
    bid_counts: dict[BidKind, int] = Field(default_factory=dict)
    series: ChartSeries


class ExportArchiveResponse(BaseModel):
    status: Literal["ok"]
    storage: dict
