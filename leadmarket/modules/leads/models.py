"""Lead domain models."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class Lead:
    id: str
    title: str
    description: str
    location: str
    creator_id: str
    email: Optional[str] = None
    contact_number: Optional[str] = None
    category_name: Optional[str] = None
    created_at: Optional[datetime] = None

    def masked(self) -> "Lead":
        """Copy without the paid contact fields."""
        return replace(self, email=None, contact_number=None)


@dataclass(slots=True)
class LeadCreateInput:
    title: str
    email: str
    contact_number: str
    description: str = ""
    location: str = ""
    category_name: Optional[str] = None
