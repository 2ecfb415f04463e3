"""
data model for memo entries
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class MemoFormData:
    """
    The caller-controlled part of a memo, used for create and update.
    Identifier and timestamps belong to the store.
    """

    title: str
    content: str
    category: str
    tags: list[str]


@dataclass
class Memo:
    """
    Represents a stored memo with its store-assigned id and timestamps.
    """

    id: str
    title: str
    content: str
    category: str
    tags: list[str]
    created_at: datetime
    updated_at: datetime

    def to_form(self) -> MemoFormData:
        """
        the writable fields of this memo
        """
        return MemoFormData(
            title=self.title,
            content=self.content,
            category=self.category,
            tags=list(self.tags),
        )


@dataclass
class MemoStats:
    total: int = 0
    by_category: dict[str, int] = field(default_factory=dict)
