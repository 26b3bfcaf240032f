"""Category directory: race-safe lookup-or-create of ledger categories."""
import logging

from .models import Category

logger = logging.getLogger(__name__)


class CategoryTypeConflict(Exception):
    """A category with the requested name exists but has the other type."""

    def __init__(self, category, expected_type):
        self.category = category
        self.expected_type = expected_type
        super().__init__(
            f"Kategori '{category.name}' sudah ada dengan tipe {category.type}, bukan {expected_type}"
        )


def resolve_category(name, type, description='', color=None, icon=None):
    """Return the category called ``name``, creating it as active if absent.

    Relies on the unique constraint on ``Category.name``: ``get_or_create``
    inserts inside a savepoint and, when a concurrent caller won the insert,
    falls back to reading the committed row. Every caller therefore ends up
    with the same row.
    """
    defaults = {'type': type, 'description': description, 'is_active': True}
    if color:
        defaults['color'] = color
    if icon:
        defaults['icon'] = icon
    category, created = Category.objects.get_or_create(name=name, defaults=defaults)
    if created:
        logger.info("Created ledger category", extra={'category_id': category.pk, 'category_name': name})
    if category.type != type:
        raise CategoryTypeConflict(category, type)
    return category
