"""SizedOnDisk implementation emitter."""

import logging
from collections.abc import Iterable

from jinja2 import Environment, PackageLoader

from .bounds import augment_generics
from .config import GeneratorConfig
from .expression import build_sum, render_term
from .fields import select_fields
from .types import (
    Field,
    FieldOrigin,
    GeneratedFile,
    GeneratedImplementation,
    SumExpression,
    TypeDeclaration,
    UnsupportedShapeError,
)

logger = logging.getLogger(__name__)

env = Environment(
    loader=PackageLoader("sizederive.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("sized_on_disk.rs.j2")


def _map_origins(code: str, sum_expr: SumExpression, config: GeneratorConfig) -> dict[int, Field]:
    """Find the output line of each term, in order."""
    origins: dict[int, Field] = {}
    lines = code.splitlines()
    lineno = 0
    for term in sum_expr.terms:
        text = render_term(term, config)
        while lineno < len(lines) and text not in lines[lineno]:
            lineno += 1
        if lineno == len(lines):
            raise RuntimeError(f"Template dropped the term for field {term.origin.label}")
        origins[lineno + 1] = term.origin
        lineno += 1
    return origins


def emit(decl: TypeDeclaration, config: GeneratorConfig | None = None) -> GeneratedImplementation:
    """Generate the SizedOnDisk implementation for one declaration.

    Raises UnsupportedShapeError for enums and unions; nothing is produced
    for them.
    """
    config = config or GeneratorConfig()

    if decl.shape.is_variant:
        raise UnsupportedShapeError(decl.name, decl.shape)

    generics = augment_generics(decl.generics, config.trait_path)
    fields = select_fields(decl.fields, config.ignore_attribute)
    sum_expr = build_sum(fields, decl.shape, decl.name)

    code = template.render(
        type_name=decl.name,
        generics=generics,
        sum=sum_expr,
        config=config,
        render_term=lambda t: render_term(t, config),
    )

    logger.debug("Generated %s for %s", config.trait_name, decl.name)

    return GeneratedImplementation(
        type_name=decl.name,
        generics=generics,
        sum=sum_expr,
        code=code,
        origins=_map_origins(code, sum_expr, config),
        position=decl.position,
    )


def derive(decl: TypeDeclaration, config: GeneratorConfig | None = None) -> str:
    """Generate and return only the code text."""
    return emit(decl, config).code


def derive_all(
    decls: Iterable[TypeDeclaration],
    config: GeneratorConfig | None = None,
    *,
    only_derived: bool = True,
) -> list[GeneratedImplementation]:
    """Generate implementations for a batch of declarations.

    With only_derived, declarations without #[derive(SizedOnDisk)] are
    skipped. Any unsupported declaration fails the whole batch.
    """
    config = config or GeneratorConfig()
    result: list[GeneratedImplementation] = []
    for decl in decls:
        if only_derived and not decl.derives_trait(config.trait_name):
            logger.debug("Skipping %s (no derive)", decl.name)
            continue
        result.append(emit(decl, config))
    return result


def render_file(impls: Iterable[GeneratedImplementation]) -> GeneratedFile:
    """Join implementations into one source file, keeping field origins.

    Implementations are separated by one blank line; every impl's line map
    is shifted to its place in the joined text.
    """
    parts: list[str] = []
    origins: dict[int, FieldOrigin] = {}
    offset = 0
    for impl in impls:
        for line, source in impl.origins.items():
            origins[offset + line] = FieldOrigin(impl.type_name, source)
        parts.append(impl.code)
        offset += impl.code.count("\n") + 1
    return GeneratedFile(code="\n".join(parts), origins=origins)


def render_all(impls: Iterable[GeneratedImplementation]) -> str:
    """Join implementations into one source file."""
    return render_file(impls).code
