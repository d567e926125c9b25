from collections.abc import Iterable, Mapping

from .models import RouteCategory

CategoryIndex = Mapping[str, RouteCategory]


def build_category_index(categories: Iterable[RouteCategory]) -> dict[str, RouteCategory]:
    """Map category id -> category. Ids are unique at the source."""
    return {category.id: category for category in categories}


def difficulty_for(index: CategoryIndex, category_id: str) -> RouteCategory | None:
    """Category for ``category_id`` if it resolves and carries a difficulty index."""
    category = index.get(category_id)
    # index 0 is a real tier (V0); only a missing index is excluded
    if category is None or category.difficulty_index is None:
        return None
    return category
