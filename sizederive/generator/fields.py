"""Field selection."""

import logging
from collections.abc import Iterable

from .types import Field

logger = logging.getLogger(__name__)


def is_ignored(field: Field, ignore: str) -> bool:
    """Check if a field carries the bare ignore marker.

    Only the marker form counts: #[dignore(...)] with arguments is some other
    attribute that happens to share the name.
    """
    return any(a.name == ignore and a.is_marker for a in field.annotations)


def select_fields(fields: Iterable[Field], ignore: str) -> list[Field]:
    """Return the fields that take part in the size sum, in declaration order."""
    selected: list[Field] = []
    for field in fields:
        if is_ignored(field, ignore):
            logger.debug("Skipping field %s (#[%s])", field.label, ignore)
            continue
        selected.append(field)
    return selected
