"""
Group CRUD operations.

Dependencies: sqlalchemy, classroom_rag.boundary.db.models
System role: Group lookup for prompt identity
"""

from classroom_rag.boundary.db.CRUD.base_crud import BaseCRUD
from classroom_rag.boundary.db.models.group_model import GroupModel


class GroupCRUD(BaseCRUD[GroupModel]):
    """CRUD operations for GroupModel."""

    def __init__(self) -> None:
        super().__init__(GroupModel)


group_crud = GroupCRUD()
