"""Type declaration reader using Lark."""

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, TypeVar

from lark import Lark, Token
from lark.exceptions import UnexpectedInput
from lark.visitors import Transformer, v_args

from .types import (
    Annotation,
    Field,
    GeneratorError,
    GenericKind,
    GenericParam,
    Generics,
    Shape,
    SourcePosition,
    TypeDeclaration,
)

logger = logging.getLogger(__name__)

_g_parser: Lark | None = None


class ParseError(GeneratorError):
    """Raised when declaration text cannot be parsed."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        super().__init__(message)
        self.line = line
        self.column = column


class ValidationError(GeneratorError):
    """Raised when a parsed declaration is inconsistent."""


@dataclass
class _Name:
    value: str
    position: SourcePosition


@dataclass
class _TypeRef:
    value: str
    position: SourcePosition


@dataclass
class _Bound:
    value: str


@dataclass
class _Bounds:
    values: tuple[str, ...]


@dataclass
class _Default:
    value: str


@dataclass
class _AttrPath:
    value: str


@dataclass
class _AttrArgs:
    value: str


@dataclass
class _ParenGroup:
    value: str


@dataclass
class _Visibility:
    pass


@dataclass
class _GenericParams:
    params: tuple[GenericParam, ...]


@dataclass
class _WherePred:
    value: str


@dataclass
class _Where:
    predicates: tuple[str, ...]


@dataclass
class _Fields:
    fields: tuple[Field, ...]


@dataclass
class _Body:
    shape: Shape
    fields: tuple[Field, ...]
    where: tuple[str, ...]


TFilter = TypeVar("TFilter", bound=object)


def _filter(args: list[Any], class_type: type[TFilter]) -> list[TFilter]:
    return [v for v in args if isinstance(v, class_type)]


def _find_one(args: list[Any], class_type: type[TFilter]) -> TFilter | None:
    filtered = _filter(args, class_type)
    if len(filtered) == 0:
        return None
    if len(filtered) > 1:
        raise RuntimeError(f"Found more than one {class_type}")
    return filtered[0]


def _find_required(args: list[Any], class_type: type[TFilter]) -> TFilter:
    found = _find_one(args, class_type)
    if found is None:
        raise ValidationError(f"Missing {class_type.__name__.lstrip('_')}")
    return found


TMany = TypeVar("TMany")


def _find_many(args: list[Any], class_type: type[TMany]) -> list[TMany]:
    return _filter(args, class_type)


def _squash(text: str) -> str:
    """Collapse runs of whitespace so multi-line types read as one line."""
    return " ".join(text.split())


def _line_col(text: str, index: int) -> tuple[int, int]:
    line = text.count("\n", 0, index) + 1
    return line, index - text.rfind("\n", 0, index)


def _blank_comments(text: str) -> str:
    """Replace comments with spaces, keeping newlines so positions still match.

    Block comments nest, so they cannot be expressed as a grammar terminal.
    """
    out = list(text)
    i, n = 0, len(text)
    while i < n:
        if text[i] == '"':
            i += 1
            while i < n and text[i] != '"':
                i += 2 if text[i] == "\\" else 1
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            end = n if end < 0 else end
            out[i:end] = " " * (end - i)
            i = end
        elif text.startswith("/*", i):
            start, depth = i, 0
            while i < n:
                if text.startswith("/*", i):
                    depth += 1
                    i += 2
                elif text.startswith("*/", i):
                    depth -= 1
                    i += 2
                    if depth == 0:
                        break
                else:
                    i += 1
            if depth:
                line, column = _line_col(text, start)
                raise ParseError(f"Unterminated block comment at line {line}, column {column}", line, column)
            for j in range(start, i):
                if out[j] != "\n":
                    out[j] = " "
        else:
            i += 1
    return "".join(out)


def _derives(annotations: list[Annotation]) -> tuple[str, ...]:
    names: list[str] = []
    for annotation in annotations:
        if annotation.name != "derive" or not annotation.arguments:
            continue
        for item in annotation.arguments.split(","):
            item = item.strip()
            if item:
                names.append(item.rsplit("::", 1)[-1])
    return tuple(names)


class TreeTransformer(Transformer):
    """Transform parse tree into type declarations.

    Types, bounds and where predicates are kept as source text; the generator
    never looks inside them.
    """

    def __init__(self, text: str):
        super().__init__()
        self.text = text

    def _slice(self, meta: Any) -> str:
        return _squash(self.text[meta.start_pos : meta.end_pos])

    def name(self, args: list[Token]) -> _Name:
        token = args[0]
        return _Name(value=str(token), position=SourcePosition(token.line, token.column))

    # Attributes

    def attr_path(self, args: list[Token]) -> _AttrPath:
        return _AttrPath(value="::".join(str(a) for a in args))

    def attr_value(self, args: list[Token]) -> str:
        return str(args[0])

    @v_args(meta=True)
    def paren_group(self, meta: Any, args: list[Any]) -> _ParenGroup:
        return _ParenGroup(value=self.text[meta.start_pos : meta.end_pos])

    def attr_args(self, args: list[Any]) -> _AttrArgs:
        if isinstance(args[0], _ParenGroup):
            value = args[0].value.strip().removeprefix("(").removesuffix(")")
        else:
            value = str(args[0])
        return _AttrArgs(value=_squash(value))

    def attribute(self, args: list[Any]) -> Annotation:
        path = _find_required(args, _AttrPath)
        arguments = _find_one(args, _AttrArgs)
        return Annotation(name=path.value, arguments=arguments.value if arguments else None)

    def visibility(self, args: list[Any]) -> _Visibility:
        return _Visibility()

    # Types and bounds

    @v_args(meta=True)
    def type(self, meta: Any, args: list[Any]) -> _TypeRef:
        return _TypeRef(value=self._slice(meta), position=SourcePosition(meta.line, meta.column))

    @v_args(meta=True)
    def bound(self, meta: Any, args: list[Any]) -> _Bound:
        return _Bound(value=self._slice(meta))

    def bounds(self, args: list[Any]) -> _Bounds:
        return _Bounds(values=tuple(b.value for b in _find_many(args, _Bound)))

    def lifetime_bounds(self, args: list[Token]) -> _Bounds:
        return _Bounds(values=tuple(str(a) for a in args))

    @v_args(meta=True)
    def const_default(self, meta: Any, args: list[Any]) -> _Default:
        return _Default(value=self._slice(meta))

    # Generics

    def lifetime_param(self, args: list[Any]) -> GenericParam:
        bounds = _find_one(args, _Bounds)
        return GenericParam(
            kind=GenericKind.LIFETIME,
            name=str(args[0]),
            bounds=bounds.values if bounds else (),
        )

    def const_param(self, args: list[Any]) -> GenericParam:
        name = _find_required(args, _Name)
        const_type = _find_required(args, _TypeRef)
        default = _find_one(args, _Default)
        return GenericParam(
            kind=GenericKind.CONST,
            name=name.value,
            const_type=const_type.value,
            default=default.value if default else None,
        )

    def type_param(self, args: list[Any]) -> GenericParam:
        name = _find_required(args, _Name)
        bounds = _find_one(args, _Bounds)
        default = _find_one(args, _TypeRef)
        return GenericParam(
            kind=GenericKind.TYPE,
            name=name.value,
            bounds=bounds.values if bounds else (),
            default=default.value if default else None,
        )

    def generics(self, args: list[Any]) -> _GenericParams:
        return _GenericParams(params=tuple(_find_many(args, GenericParam)))

    @v_args(meta=True)
    def where_pred(self, meta: Any, args: list[Any]) -> _WherePred:
        return _WherePred(value=self._slice(meta))

    def where_clause(self, args: list[Any]) -> _Where:
        return _Where(predicates=tuple(p.value for p in _find_many(args, _WherePred)))

    # Fields

    def named_field(self, args: list[Any]) -> Field:
        name = _find_required(args, _Name)
        field_type = _find_required(args, _TypeRef)
        return Field(
            index=0,
            name=name.value,
            type=field_type.value,
            annotations=tuple(_find_many(args, Annotation)),
            position=name.position,
        )

    def tuple_field(self, args: list[Any]) -> Field:
        field_type = _find_required(args, _TypeRef)
        return Field(
            index=0,
            type=field_type.value,
            annotations=tuple(_find_many(args, Annotation)),
            position=field_type.position,
        )

    def named_fields(self, args: list[Any]) -> _Fields:
        return _Fields(fields=tuple(replace(f, index=i) for i, f in enumerate(_find_many(args, Field))))

    tuple_fields = named_fields

    def _body(self, shape: Shape, args: list[Any]) -> _Body:
        fields = _find_one(args, _Fields)
        where = _find_one(args, _Where)
        return _Body(
            shape=shape,
            fields=fields.fields if fields else (),
            where=where.predicates if where else (),
        )

    def named_body(self, args: list[Any]) -> _Body:
        return self._body(Shape.NAMED, args)

    def tuple_body(self, args: list[Any]) -> _Body:
        return self._body(Shape.POSITIONAL, args)

    def unit_body(self, args: list[Any]) -> _Body:
        return self._body(Shape.UNIT, args)

    # Declarations

    def _declaration(self, shape: Shape, args: list[Any], body: _Body | None = None) -> TypeDeclaration:
        name = _find_required(args, _Name)
        params = _find_one(args, _GenericParams)
        where = _find_one(args, _Where)
        fields = _find_one(args, _Fields)
        annotations = _find_many(args, Annotation)

        where_clause = where.predicates if where else ()
        if body is not None:
            where_clause = body.where
            field_list = body.fields
        else:
            field_list = fields.fields if fields else ()

        return TypeDeclaration(
            name=name.value,
            shape=shape,
            fields=field_list,
            generics=Generics(params=params.params if params else (), where_clause=where_clause),
            annotations=tuple(annotations),
            derives=_derives(annotations),
            position=name.position,
        )

    def struct(self, args: list[Any]) -> TypeDeclaration:
        body = _find_required(args, _Body)
        return self._declaration(body.shape, args, body)

    def enum(self, args: list[Any]) -> TypeDeclaration:
        # Variant payloads stay as untransformed subtrees
        return self._declaration(Shape.ENUM, args)

    def union(self, args: list[Any]) -> TypeDeclaration:
        return self._declaration(Shape.UNION, args)


def validate(decls: list[TypeDeclaration]) -> None:
    """Validate parsed declarations."""
    seen: set[str] = set()
    for decl in decls:
        if decl.name in seen:
            raise ValidationError(f"{decl.name} declared more than once")
        seen.add(decl.name)

        param_names = [p.name for p in decl.generics.params]
        for param in set(param_names):
            if param_names.count(param) > 1:
                raise ValidationError(f"{decl.name}: generic parameter {param} declared more than once")

        field_names = [f.name for f in decl.fields if f.name is not None]
        for field_name in set(field_names):
            if field_names.count(field_name) > 1:
                raise ValidationError(f"{decl.name}: field {field_name} declared more than once")

        if decl.shape == Shape.UNIT and decl.fields:
            raise ValidationError(f"{decl.name}: unit struct cannot have fields")
        if decl.shape == Shape.POSITIONAL and field_names:
            raise ValidationError(f"{decl.name}: tuple struct fields cannot be named")


def _get_parser() -> Lark:
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/declaration.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar, propagate_positions=True)

    return _g_parser


def parse(text: str) -> list[TypeDeclaration]:
    """Parse declaration text into TypeDeclarations, in source order."""
    source = _blank_comments(text)
    try:
        tree = _get_parser().parse(source)
    except UnexpectedInput as e:
        raise ParseError(f"Invalid declaration at line {e.line}, column {e.column}", e.line, e.column) from e

    decls = _find_many(TreeTransformer(source).transform(tree).children, TypeDeclaration)
    logger.debug("Parsed %d declaration(s)", len(decls))

    validate(decls)

    return decls
