from enum import Enum
from typing import Optional


class Subject(str, Enum):
    """
    Represents one of the three recurring subjects of the school day.

    The declaration order is the rotation order: a class at ordinal
    position 0 gets them in this order across slots A, B and C.

    Values:
        TAKS: Church rite
        AL7AN: Hymns
        COPTIC: Coptic language
    """
    TAKS = "taks"
    AL7AN = "al7an"
    COPTIC = "coptic"

    @property
    def record_field(self) -> str:
        """Column holding this subject's teacher in the assignment record"""
        return f"{self.value}_teacher_id"

    @classmethod
    def parse(cls, value) -> Optional["Subject"]:
        """Returns the Subject for a raw value, or None if it is not one"""
        try:
            return cls(value)
        except ValueError:
            return None


SUBJECTS = tuple(Subject)
