"""
Group ORM model.

A group (class, team, course) owns a document corpus and the private
conversations its members have with the assistant. Membership and ownership
rules live in the surrounding application; this table only carries the
identity used in the answer preamble.

Dependencies: sqlalchemy, classroom_rag.boundary.db.base
System role: Group identity for corpus scoping and prompt assembly
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from classroom_rag.boundary.db.base import Base, TimestampMixin, UUIDMixin


class GroupModel(Base, UUIDMixin, TimestampMixin):
    """
    Group ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        code: Short code, e.g. "CS 131" (optional)
        name: Display name
        assistant_name: Name the assistant answers as in this group
    """

    __tablename__ = "groups"

    code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    assistant_name: Mapped[str | None] = mapped_column(String(64), nullable=True)

    @property
    def display_name(self) -> str:
        """Group identity as shown to the model, e.g. 'CS 131 - Compilers'."""
        return f"{self.code} - {self.name}" if self.code else self.name
