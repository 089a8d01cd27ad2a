from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ClassRef:
    """
    Represents a class as seen by the scheduling engine.

    Classes are owned by the class-management side of the system; the
    engine only reads them. The ordinal index is the position of the class
    in the globally ordered class list and only drives its subject rotation.

    Attributes:
        id: Unique identifier for the class
        ordinal_index: Position in the ordered class list (0-based)
        location: Display name (e.g., "Floor 1 - Room 101")
        level: Optional level descriptor, e.g. {"level": 1, "stage": 2}
    """
    id: str
    ordinal_index: int
    location: str
    level: Optional[Dict[str, Any]] = field(default=None, hash=False)

    @property
    def display_name(self) -> str:
        return self.location or self.id

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "location": self.location, "level": self.level}
