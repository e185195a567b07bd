from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AnnouncementType, Audience


@dataclass(frozen=True)
class Announcement:
    id: str
    title: str
    message: str
    type: AnnouncementType
    target_audience: Audience
    active: Optional[bool] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

    @property
    def is_active(self) -> bool:
        """Unset means active."""
        return self.active is not False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "type": self.type.value,
            "targetAudience": self.target_audience.value,
            "active": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
