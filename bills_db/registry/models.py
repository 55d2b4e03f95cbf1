from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


# ----------------------------------------------------------------------
# Bill
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class BillRecord:
    id: str
    title: str
    policy_area: Optional[str] = None
    current_house: Optional[str] = None
    status: Optional[str] = None
    originating_house: Optional[str] = None
    introduction_date: Optional[str] = None
    days_to_approval: Optional[int] = None
    is_act: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape used by the dashboard front-end."""
        return {
            "id": self.id,
            "title": self.title,
            "policyArea": self.policy_area,
            "current_house": self.current_house,
            "status": self.status,
            "originating_house": self.originating_house,
            "introduction_date": self.introduction_date,
            "days_to_approval": self.days_to_approval,
            "is_act": self.is_act,
        }


def as_bool(value: Any) -> bool:
    """Normalise the isAct column across drivers and CSV exports."""
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "t", "yes", "y")
    if value is None:
        return False
    return bool(value)
