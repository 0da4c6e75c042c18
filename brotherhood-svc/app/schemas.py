from __future__ import annotations
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Annotated, Literal
from uuid import UUID
import datetime as dt
from datetime import date, datetime
from decimal import Decimal

Name128    = Annotated[str, Field(min_length=1, max_length=128)]
MemberId   = Annotated[str, Field(max_length=64)]
NonNegInt  = Annotated[int, Field(ge=0)]
Text1000   = Annotated[str, Field(max_length=1000)]

OptStr     = str | None
BrotherDateStatusLit = Literal["pending", "approved", "rejected"]

class Created(BaseModel):
    id: UUID

# --- semesters
class SemesterCreate(BaseModel):
    name: Name128
    start_date: date
    end_date: date
    dues_amount: Decimal = Field(default=Decimal("0"), ge=0)
    is_current: bool = False

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

class SemesterUpdate(BaseModel):
    name: Name128 | None = None
    start_date: date | None = None
    end_date: date | None = None
    dues_amount: Decimal | None = Field(default=None, ge=0)
    is_current: bool | None = None

class SemesterRead(BaseModel):
    id: UUID
    name: str
    start_date: date
    end_date: date
    dues_amount: Decimal
    is_current: bool

# --- point categories
class PointCategoryCreate(BaseModel):
    name: Name128
    default_points: Annotated[int, Field(ge=1)] = 1
    description: OptStr = None

    @field_validator("name")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

class PointCategoryRead(BaseModel):
    id: UUID
    name: str
    default_points: int
    description: OptStr
    is_active: bool

# --- points
class PointAward(BaseModel):
    member_id: MemberId
    category_id: UUID
    semester_id: UUID
    points: int
    reason: Text1000 | None = None
    event_id: MemberId | None = None

    @field_validator("points")
    @classmethod
    def _non_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("non-zero points are required")
        return v

class PointRead(BaseModel):
    id: UUID
    member_id: str
    semester_id: UUID
    category_id: UUID
    points: int
    reason: OptStr = None
    event_id: OptStr = None
    brother_date_id: UUID | None = None
    awarded_by: str
    created_at: datetime
    first_name: OptStr = None
    last_name: OptStr = None
    category_name: OptStr = None
    awarded_first: OptStr = None
    awarded_last: OptStr = None

class MyPoints(BaseModel):
    member_id: str
    semester_id: UUID | None
    total_points: int
    entries: list[PointRead]

class LeaderboardRow(BaseModel):
    id: str
    first_name: str
    last_name: str
    avatar_url: OptStr = None
    total_points: int
    entries: int
    rank: int

class Leaderboard(BaseModel):
    semester_id: UUID | None
    rows: list[LeaderboardRow]

# --- brother dates
class BrotherDateCreate(BaseModel):
    member1_id: MemberId | None = None  # defaults to the caller
    member2_id: MemberId = ""
    date: dt.date
    semester_id: UUID | None = None     # defaults to the current semester
    description: Text1000 | None = None

    @field_validator("member1_id", "member2_id", "description")
    @classmethod
    def _trim(cls, v: str | None) -> str | None:
        return v.strip() if v is not None else v

class BrotherDateDecision(BaseModel):
    approved: bool
    points_awarded: NonNegInt = 0

class BrotherDateRead(BaseModel):
    id: UUID
    member1_id: str
    member2_id: str
    submitted_by: str
    semester_id: UUID
    date: dt.date
    description: OptStr = None
    status: BrotherDateStatusLit
    points_awarded: int
    decided_by: OptStr = None
    decided_at: datetime | None = None
    created_at: datetime
    m1_first: OptStr = None
    m1_last: OptStr = None
    m2_first: OptStr = None
    m2_last: OptStr = None
