"""Data models for bookings returned by the booking API."""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, field_validator, model_validator


DEFAULT_BAY_REF = "1"


class BookingUser(BaseModel):
    """User that owns a booking."""

    id: int
    name: str = ""
    email: Optional[str] = None
    is_system_user: bool = Field(alias="isSystemUser", default=False)

    class Config:
        populate_by_name = True
        frozen = True


class PlayerOption(BaseModel):
    """Player category attached to a booking."""

    id: int
    quantity: int = 0
    name: Optional[str] = None

    class Config:
        frozen = True


class Booking(BaseModel):
    """A single bay reservation.

    Timestamps without an offset are kept naive here and interpreted as
    wall-clock time in the venue timezone by the view layer.
    """

    id: int
    start: datetime
    end: datetime
    status: str = ""
    payment_status: str = Field(alias="paymentStatus", default="")
    type: Optional[str] = None
    notes: Optional[str] = None
    source: Optional[str] = None
    is_block: bool = Field(alias="isBlock", default=False)
    players: int = Field(default=1, ge=1)
    player_options: List[PlayerOption] = Field(
        alias="playerOptions", default_factory=list
    )
    user: BookingUser
    extras_string: Optional[str] = Field(alias="extrasString", default=None)
    product_ids: List[int] = Field(alias="productIds", default_factory=list)
    bay_ref: str = Field(alias="bayRef", default=DEFAULT_BAY_REF)
    bay_id: Optional[int] = Field(alias="bayId", default=None)
    bay_option_id: Optional[int] = Field(alias="bayOptionId", default=None)

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("bay_ref", mode="before")
    @classmethod
    def default_bay_ref(cls, v):
        # Missing, null and empty refs all mean the first bay
        if v is None or v == "":
            return DEFAULT_BAY_REF
        return str(v)

    @model_validator(mode="after")
    def check_interval(self):
        same_kind = (self.start.tzinfo is None) == (self.end.tzinfo is None)
        if same_kind and self.end < self.start:
            raise ValueError(f"booking {self.id} ends before it starts")
        return self

    @property
    def duration_hours(self) -> float:
        """Length of the booking in hours."""
        return (self.end - self.start).total_seconds() / 3600

    @property
    def players_display(self) -> str:
        return f"{self.players} {'player' if self.players == 1 else 'players'}"
