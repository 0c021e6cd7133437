"""Data models for bay options (bookable bay configurations)."""

from typing import Dict, Iterable, Optional
from pydantic import BaseModel


class BayOption(BaseModel):
    """Bay option information, used to label bookings."""

    id: int
    name: str

    class Config:
        frozen = True


def index_bay_options(options: Iterable[BayOption]) -> Dict[int, BayOption]:
    """Index bay options by id for booking label lookups."""
    return {option.id: option for option in options}


def bay_option_label(
    bay_option_id: Optional[int], options: Dict[int, BayOption]
) -> Optional[str]:
    """Get the display name for a bay option id, or None when unknown."""
    if bay_option_id is None:
        return None
    option = options.get(bay_option_id)
    return option.name if option else None
