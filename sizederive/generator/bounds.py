"""Add the size capability bound to generic type parameters."""

from dataclasses import replace

from .types import GenericKind, GenericParam, Generics


def add_bound(param: GenericParam, bound: str) -> GenericParam:
    """Return param with bound appended, if it is a type parameter."""
    if param.kind != GenericKind.TYPE or bound in param.bounds:
        return param
    return replace(param, bounds=(*param.bounds, bound))


def augment_generics(generics: Generics, bound: str) -> Generics:
    """Add `bound` to every type parameter.

    Every type parameter gets the bound, whether or not a field uses it.
    Lifetimes, const parameters and the where clause are passed through.
    """
    return replace(generics, params=tuple(add_bound(p, bound) for p in generics.params))
