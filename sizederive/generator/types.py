"""Type definitions for declaration reading and code generation."""

from dataclasses import dataclass, field
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin


class GeneratorError(RuntimeError):
    """Base class for all generation failures."""


class UnsupportedShapeError(GeneratorError):
    """Raised when a declaration has a shape the generator cannot sum."""

    def __init__(self, type_name: str, shape: "Shape"):
        super().__init__(f"Cannot derive SizedOnDisk for {type_name}: {shape} types are not supported")
        self.type_name = type_name
        self.shape = shape


class Shape(StrEnum):
    """Declaration shape."""

    NAMED = auto()  # struct Point { x: u32 }
    POSITIONAL = auto()  # struct Pair(u32, u32);
    UNIT = auto()  # struct Marker;
    ENUM = auto()
    UNION = auto()

    @property
    def is_variant(self) -> bool:
        return self in (Shape.ENUM, Shape.UNION)


class GenericKind(StrEnum):
    """Kind of a generic parameter."""

    TYPE = auto()
    LIFETIME = auto()
    CONST = auto()


@dataclass(frozen=True)
class SourcePosition(DataClassJsonMixin):
    """1-based line and column in the declaration text."""

    line: int
    column: int

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


@dataclass(frozen=True)
class Annotation(DataClassJsonMixin):
    """Represents an attribute attached to a field or declaration.

    arguments is None for bare markers like #[dignore], otherwise the raw
    text between the parentheses.
    """

    name: str
    arguments: str | None = None

    @property
    def is_marker(self) -> bool:
        return self.arguments is None


@dataclass(frozen=True)
class GenericParam(DataClassJsonMixin):
    """Represents one entry of a generic parameter list."""

    kind: GenericKind
    name: str
    bounds: tuple[str, ...] = ()
    const_type: str | None = None
    default: str | None = None

    def declaration(self) -> str:
        """Text used in impl generics (bounds kept, default dropped)."""
        if self.kind == GenericKind.CONST:
            return f"const {self.name}: {self.const_type}"
        if self.bounds:
            return f"{self.name}: {' + '.join(self.bounds)}"
        return self.name


@dataclass(frozen=True)
class Generics(DataClassJsonMixin):
    """Represents a generic parameter list and its where clause."""

    params: tuple[GenericParam, ...] = ()
    where_clause: tuple[str, ...] = ()

    @property
    def type_params(self) -> list[GenericParam]:
        return [p for p in self.params if p.kind == GenericKind.TYPE]

    def impl_generics(self) -> str:
        if not self.params:
            return ""
        return "<" + ", ".join(p.declaration() for p in self.params) + ">"

    def type_generics(self) -> str:
        if not self.params:
            return ""
        return "<" + ", ".join(p.name for p in self.params) + ">"

    def where_text(self) -> str:
        if not self.where_clause:
            return ""
        return "where " + ", ".join(self.where_clause)


@dataclass(frozen=True)
class Field(DataClassJsonMixin):
    """Represents a field of a struct.

    name is None for positional (tuple-style) fields; index is always the
    zero-based declaration index.
    """

    index: int
    type: str
    name: str | None = None
    annotations: tuple[Annotation, ...] = ()
    position: SourcePosition | None = None

    @property
    def label(self) -> str:
        return self.name if self.name is not None else str(self.index)


@dataclass(frozen=True)
class TypeDeclaration(DataClassJsonMixin):
    """Represents one type declaration handed to the generator."""

    name: str
    shape: Shape
    fields: tuple[Field, ...] = ()
    generics: Generics = field(default_factory=Generics)
    annotations: tuple[Annotation, ...] = ()
    derives: tuple[str, ...] = ()
    position: SourcePosition | None = None

    def derives_trait(self, trait_name: str) -> bool:
        return trait_name in self.derives


@dataclass(frozen=True)
class SizeTerm(DataClassJsonMixin):
    """One `size(&self.<access>)` call and the field it came from."""

    access: str
    origin: Field


@dataclass(frozen=True)
class SumExpression(DataClassJsonMixin):
    """Additive expression: the zero term followed by per-field terms."""

    terms: tuple[SizeTerm, ...] = ()

    @property
    def is_zero(self) -> bool:
        return not self.terms


@dataclass(frozen=True)
class GeneratedImplementation(DataClassJsonMixin):
    """Result of one generation call."""

    type_name: str
    generics: Generics
    sum: SumExpression
    code: str
    # output line number (1-based) -> originating field
    origins: dict[int, Field] = field(default_factory=dict)
    position: SourcePosition | None = None

    def origin_at(self, line: int) -> Field | None:
        """Return the field a line of the generated code was produced for."""
        return self.origins.get(line)

    def describe_origin(self, line: int) -> str | None:
        """Describe the field behind a generated line for diagnostics."""
        origin = self.origin_at(line)
        if origin is None:
            return None
        return FieldOrigin(self.type_name, origin).describe()


@dataclass(frozen=True)
class FieldOrigin(DataClassJsonMixin):
    """A field together with the type it belongs to."""

    type_name: str
    source: Field

    def describe(self) -> str:
        text = f"field '{self.source.label}' of {self.type_name}"
        if self.source.position is not None:
            text += f" (input {self.source.position})"
        return text


@dataclass(frozen=True)
class GeneratedFile(DataClassJsonMixin):
    """Several implementations joined into one source file."""

    code: str
    # file line number (1-based) -> originating type and field
    origins: dict[int, FieldOrigin] = field(default_factory=dict)

    def origin_at(self, line: int) -> FieldOrigin | None:
        return self.origins.get(line)

    def describe_origin(self, line: int) -> str | None:
        origin = self.origin_at(line)
        return origin.describe() if origin is not None else None
