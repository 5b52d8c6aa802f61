"""Category domain service."""

from typing import Any, Optional
from propfin.database.base import Database
from propfin.domain.entities import CONTEXTS, TRANSACTION_TYPES, Category
from propfin.domain.errors import NotFoundError, ValidationError, entity_not_found


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def _validate(self, type: Optional[str], context: Optional[str]) -> None:
        if type is not None and type not in TRANSACTION_TYPES:
            raise ValidationError(f"Invalid category type '{type}': expected income or expense")
        if context is not None and context not in CONTEXTS:
            raise ValidationError(f"Invalid context '{context}': expected personal or property")

    def create_category(
        self, user_id: int, name: str, type: str, context: str, color: Optional[str] = None
    ) -> int:
        """Create a category.

        Args:
            user_id: Owner
            name: Category name
            type: ``income`` or ``expense``
            context: ``personal`` or ``property``
            color: Optional display color

        Returns:
            Category ID

        Raises:
            ValidationError: If name is empty or type/context is unknown
        """
        if not name.strip():
            raise ValidationError("Category name cannot be empty")
        self._validate(type, context)
        return self.db.create_category(
            user_id=user_id, name=name.strip(), type=type, context=context, color=color
        )

    def get_category(self, category_id: int, user_id: int) -> Category:
        category = self.db.get_category(category_id)
        if category is None or category.user_id != user_id:
            raise NotFoundError(entity_not_found("Category", category_id))
        return category

    def list_categories(self, user_id: int, context: Optional[str] = None) -> list[Category]:
        """List a user's categories.

        Args:
            user_id: Owner
            context: Optional context to filter by

        Returns:
            List of category entities
        """
        return self.db.list_categories(user_id, context=context)

    def update_category(self, category_id: int, user_id: int, **fields: Any) -> None:
        self.get_category(category_id, user_id)
        self._validate(fields.get("type"), fields.get("context"))
        self.db.update_category(category_id, **fields)

    def delete_category(self, category_id: int, user_id: int) -> None:
        """Delete a category; its transactions become uncategorized."""
        self.get_category(category_id, user_id)
        with self.db.atomic():
            self.db.clear_transaction_reference("category_id", category_id)
            self.db.delete_category(category_id)
