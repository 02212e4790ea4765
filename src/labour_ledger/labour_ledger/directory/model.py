from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LabourerSummary:
    labourer_id: int
    full_name: str
    contact_number: Optional[str] = None

    def to_dict(self) -> dict:
        return {"id": self.labourer_id, "fullName": self.full_name, "contactNumber": self.contact_number}


@dataclass(frozen=True)
class ProjectSummary:
    project_id: int
    name: str
    location: Optional[str] = None

    def to_dict(self) -> dict:
        return {"id": self.project_id, "name": self.name, "location": self.location}


@dataclass(frozen=True)
class MarkerSummary:
    """The user who marked an attendance record."""

    user_id: int
    username: str
    email: Optional[str] = None

    def to_dict(self) -> dict:
        return {"id": self.user_id, "username": self.username, "email": self.email}
