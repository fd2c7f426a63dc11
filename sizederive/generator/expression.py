"""Build the size sum expression for a declaration's fields."""

import logging
from collections.abc import Sequence

from .config import GeneratorConfig
from .types import Field, Shape, SizeTerm, SumExpression, UnsupportedShapeError

logger = logging.getLogger(__name__)


def field_access(field: Field, shape: Shape) -> str:
    """Return the `self.` access path for a field."""
    if shape == Shape.NAMED:
        if field.name is None:
            raise ValueError(f"Named-field struct has a field without a name at index {field.index}")
        return f"self.{field.name}"
    # Tuple slots keep their declaration index even if earlier slots are ignored
    return f"self.{field.index}"


def build_sum(fields: Sequence[Field], shape: Shape, type_name: str = "<anonymous>") -> SumExpression:
    """Build `0 + size(&self.a) + size(&self.b) ...` for the given fields.

    Fields must already be filtered; order is preserved. A unit struct, or a
    struct whose fields were all ignored, yields the zero term alone.
    """
    if shape.is_variant:
        raise UnsupportedShapeError(type_name, shape)

    if shape == Shape.UNIT:
        return SumExpression()

    terms = tuple(SizeTerm(access=field_access(f, shape), origin=f) for f in fields)
    logger.debug("%s: %d size term(s)", type_name, len(terms))
    return SumExpression(terms=terms)


def render_term(term: SizeTerm, config: GeneratorConfig) -> str:
    """Render a term as a fully qualified trait call."""
    return f"{config.trait_path}::{config.method}(&{term.access})"


def render_sum(expr: SumExpression, config: GeneratorConfig) -> str:
    """Render the whole expression on one line."""
    return " ".join(["0", *(f"+ {render_term(t, config)}" for t in expr.terms)])
