"""Tests for the declaration reader."""

import pytest

from sizederive.generator import parse
from sizederive.generator.parser import ParseError, TreeTransformer, ValidationError
from sizederive.generator.types import GenericKind, Shape, SourcePosition


def describe_parse_struct():
    def parses_named_struct(expect, parse_one):
        decl = parse_one(
            """
            struct Point {
                x: u32,
                y: u32,
            }
        """
        )
        expect(decl.name) == "Point"
        expect(decl.shape) == Shape.NAMED
        expect([f.name for f in decl.fields]) == ["x", "y"]
        expect([f.index for f in decl.fields]) == [0, 1]
        expect(decl.fields[0].type) == "u32"

    def parses_tuple_struct(expect, parse_one):
        decl = parse_one("struct Pair(u32, u64);")
        expect(decl.shape) == Shape.POSITIONAL
        expect([f.name for f in decl.fields]) == [None, None]
        expect([f.type for f in decl.fields]) == ["u32", "u64"]
        expect([f.label for f in decl.fields]) == ["0", "1"]

    def parses_unit_struct(expect, parse_one):
        decl = parse_one("struct Marker;")
        expect(decl.shape) == Shape.UNIT
        expect(decl.fields) == ()

    def parses_empty_braces_as_named(expect, parse_one):
        decl = parse_one("struct Empty {}")
        expect(decl.shape) == Shape.NAMED
        expect(decl.fields) == ()

    def parses_visibility(expect, parse_one):
        decl = parse_one(
            """
            pub struct Header {
                pub magic: u32,
                pub(crate) version: u16,
                len: u16,
            }
        """
        )
        expect([f.name for f in decl.fields]) == ["magic", "version", "len"]

    def parses_tuple_struct_visibility(expect, parse_one):
        decl = parse_one("pub struct Id(pub u64);")
        expect(decl.fields[0].type) == "u64"

    def keeps_complex_types_as_text(expect, parse_one):
        decl = parse_one(
            """
            struct Complex<'a> {
                name: &'a str,
                data: [u8; 16],
                map: std::collections::HashMap<String, Vec<u8>>,
                pair: (u32, Option<Box<u64>>),
            }
        """
        )
        expect([f.type for f in decl.fields]) == [
            "&'a str",
            "[u8; 16]",
            "std::collections::HashMap<String, Vec<u8>>",
            "(u32, Option<Box<u64>>)",
        ]

    def collapses_whitespace_in_types(expect, parse_one):
        decl = parse_one(
            """
            struct Spread {
                map: HashMap<
                    String,
                    u8
                >,
            }
        """
        )
        expect(decl.fields[0].type) == "HashMap< String, u8 >"

    def parses_raw_identifiers(expect, parse_one):
        decl = parse_one("struct Token { r#type: u8 }")
        expect(decl.fields[0].name) == "r#type"

    def ignores_comments(expect, parse_one):
        decl = parse_one(
            """
            /// A block on disk.
            struct Block {
                // offset into the file
                offset: u64,
                /* length */ len: u32,
            }
        """
        )
        expect([f.name for f in decl.fields]) == ["offset", "len"]

    def parses_multiple_declarations_in_order(expect):
        decls = parse(
            """
            struct A;
            struct B(u8);
            struct C { c: u8 }
        """
        )
        expect([d.name for d in decls]) == ["A", "B", "C"]


def describe_parse_generics():
    def parses_type_params(expect, parse_one):
        decl = parse_one("struct Wrapper<T> { inner: T }")
        params = decl.generics.params
        expect(len(params)) == 1
        expect(params[0].kind) == GenericKind.TYPE
        expect(params[0].name) == "T"
        expect(params[0].bounds) == ()

    def parses_bounds_lifetimes_and_consts(expect, parse_one):
        decl = parse_one("struct Buf<'a, 'b: 'a, K: Hash + Eq, V: ?Sized, const N: usize> { k: &'a K }")
        params = decl.generics.params
        expect([p.kind for p in params]) == [
            GenericKind.LIFETIME,
            GenericKind.LIFETIME,
            GenericKind.TYPE,
            GenericKind.TYPE,
            GenericKind.CONST,
        ]
        expect(params[1].bounds) == ("'a",)
        expect(params[2].bounds) == ("Hash", "Eq")
        expect(params[3].bounds) == ("?Sized",)
        expect(params[4].const_type) == "usize"

    def parses_defaults(expect, parse_one):
        decl = parse_one("struct Sized<T = u8, const N: usize = 4> { items: [T; N] }")
        expect(decl.generics.params[0].default) == "u8"
        expect(decl.generics.params[1].default) == "4"

    def parses_where_clause_on_named_struct(expect, parse_one):
        decl = parse_one("struct Cache<K, V> where K: Hash + Eq, V: Clone { keys: Vec<K> }")
        expect(decl.generics.where_clause) == ("K: Hash + Eq", "V: Clone")

    def parses_where_clause_on_tuple_struct(expect, parse_one):
        decl = parse_one("struct Wrap<T>(T) where T: Copy;")
        expect(decl.shape) == Shape.POSITIONAL
        expect(decl.generics.where_clause) == ("T: Copy",)

    def parses_generic_path_bounds(expect, parse_one):
        decl = parse_one("struct Iter<I: Iterator<Item = u8>> { inner: I }")
        expect(decl.generics.params[0].bounds) == ("Iterator<Item = u8>",)


def describe_parse_attributes():
    def parses_field_markers(expect, parse_one):
        decl = parse_one(
            """
            struct Wrapper<T> {
                inner: T,
                #[dignore]
                cache: Vec<u8>,
            }
        """
        )
        expect(decl.fields[0].annotations) == ()
        expect(len(decl.fields[1].annotations)) == 1
        expect(decl.fields[1].annotations[0].name) == "dignore"
        expect(decl.fields[1].annotations[0].is_marker) == True

    def parses_attribute_arguments(expect, parse_one):
        decl = parse_one(
            """
            struct Renamed {
                #[serde(rename = "id", default)]
                ident: u64,
                #[doc = "the size"]
                size: u32,
            }
        """
        )
        expect(decl.fields[0].annotations[0].name) == "serde"
        expect(decl.fields[0].annotations[0].arguments) == 'rename = "id", default'
        expect(decl.fields[1].annotations[0].arguments) == '"the size"'

    def parses_tuple_field_attributes(expect, parse_one):
        decl = parse_one("struct Triple(u8, #[dignore] u16, u32);")
        expect(decl.fields[1].annotations[0].name) == "dignore"
        expect([f.index for f in decl.fields]) == [0, 1, 2]

    def parses_derive_list(expect, parse_one):
        decl = parse_one(
            """
            #[derive(Debug, Clone, sizederive::SizedOnDisk)]
            #[repr(C)]
            struct Header { magic: u32 }
        """
        )
        expect(decl.derives) == ("Debug", "Clone", "SizedOnDisk")
        expect(decl.derives_trait("SizedOnDisk")) == True
        expect([a.name for a in decl.annotations]) == ["derive", "repr"]

    def reports_no_derives_without_attribute(expect, parse_one):
        decl = parse_one("struct Plain { x: u8 }")
        expect(decl.derives) == ()
        expect(decl.derives_trait("SizedOnDisk")) == False


def describe_parse_variants():
    def parses_enum_as_variant_shape(expect, parse_one):
        decl = parse_one(
            """
            #[derive(SizedOnDisk)]
            enum Either {
                A(u32),
                B { value: u32 },
                C = 3,
            }
        """
        )
        expect(decl.name) == "Either"
        expect(decl.shape) == Shape.ENUM
        expect(decl.shape.is_variant) == True
        expect(decl.fields) == ()

    def parses_union(expect, parse_one):
        decl = parse_one("union Bits { f: f32, u: u32 }")
        expect(decl.shape) == Shape.UNION
        expect([f.name for f in decl.fields]) == ["f", "u"]


def describe_positions():
    def records_named_field_positions(expect, parse_one):
        decl = parse_one("struct Point {\n    x: u32,\n    y: u32,\n}\n")
        expect(decl.position) == SourcePosition(1, 8)
        expect(decl.fields[0].position) == SourcePosition(2, 5)
        expect(decl.fields[1].position) == SourcePosition(3, 5)

    def records_tuple_field_positions(expect, parse_one):
        decl = parse_one("struct Pair(\n  u32,\n  Vec<u8>,\n);")
        expect(decl.fields[0].position) == SourcePosition(2, 3)
        expect(decl.fields[1].position) == SourcePosition(3, 3)

    def points_at_name_not_attribute(expect, parse_one):
        decl = parse_one("struct S {\n    #[dignore]\n    cache: u8,\n}")
        expect(decl.fields[0].position) == SourcePosition(3, 5)


def describe_less_common_syntax():
    def parses_qualified_path_types(expect, parse_one):
        decl = parse_one("struct Proj<T: Trait> { x: <T as Trait>::Out, y: <Vec<T>>::Item }")
        expect([f.type for f in decl.fields]) == ["<T as Trait>::Out", "<Vec<T>>::Item"]

    def parses_qualified_path_in_generic_args(expect, parse_one):
        decl = parse_one("struct Items<I: Iterator> { items: Vec<<I as Iterator>::Item> }")
        expect(decl.fields[0].type) == "Vec<<I as Iterator>::Item>"

    def parses_non_ascii_identifiers(expect, parse_one):
        decl = parse_one("struct Größe { wert: u8, länge: u32 }")
        expect(decl.name) == "Größe"
        expect([f.name for f in decl.fields]) == ["wert", "länge"]

    def parses_nested_block_comments(expect, parse_one):
        decl = parse_one("struct Nested { /* a /* b */ c */ x: u8, y: /* z */ u16 }")
        expect([f.name for f in decl.fields]) == ["x", "y"]
        expect(decl.fields[1].type) == "u16"

    def keeps_positions_after_multiline_comment(expect, parse_one):
        decl = parse_one("/* one\n /* two */\n */\nstruct S {\n    x: u8,\n}")
        expect(decl.position) == SourcePosition(4, 8)
        expect(decl.fields[0].position) == SourcePosition(5, 5)

    def leaves_comment_markers_inside_strings(expect, parse_one):
        decl = parse_one('struct S {\n    #[doc = "see /* and // here"]\n    x: u8,\n}')
        expect(decl.fields[0].annotations[0].arguments) == '"see /* and // here"'

    def rejects_unterminated_block_comment(expect):
        with pytest.raises(ParseError) as exc:
            parse("struct S;\n/* a /* b */")
        expect(exc.value.line) == 2
        expect(exc.value.column) == 1

    def parses_deeply_nested_attribute_arguments(expect, parse_one):
        decl = parse_one(
            """
            struct Conditional {
                #[cfg_attr(all(feature = "a", not(any(test, doc))), dignore)]
                cache: Vec<u8>,
            }
        """
        )
        annotation = decl.fields[0].annotations[0]
        expect(annotation.name) == "cfg_attr"
        expect(annotation.arguments) == 'all(feature = "a", not(any(test, doc))), dignore'
        expect(annotation.is_marker) == False

    def keeps_parentheses_inside_attribute_strings(expect, parse_one):
        decl = parse_one('struct S { #[serde(rename = "a)b")] x: u8 }')
        expect(decl.fields[0].annotations[0].arguments) == 'rename = "a)b"'


def describe_validation():
    def rejects_duplicate_fields(expect):
        with pytest.raises(ValidationError) as exc:
            parse("struct Dup { x: u8, x: u16 }")
        expect("field x" in str(exc.value)) == True

    def rejects_duplicate_generics(expect):
        with pytest.raises(ValidationError) as exc:
            parse("struct Dup<T, T> { x: T }")
        expect("generic parameter T" in str(exc.value)) == True

    def rejects_duplicate_declarations(expect):
        with pytest.raises(ValidationError) as exc:
            parse("struct A; struct A;")
        expect("more than once" in str(exc.value)) == True

    def reports_missing_tree_parts_as_validation_errors(expect):
        transformer = TreeTransformer("")
        with pytest.raises(ValidationError) as exc:
            transformer.named_field([])
        expect(str(exc.value)) == "Missing Name"
        with pytest.raises(ValidationError):
            transformer.struct([])


def describe_parse_errors():
    def rejects_invalid_syntax(expect):
        with pytest.raises(ParseError):
            parse("this is not valid syntax")

    def rejects_missing_name(expect):
        with pytest.raises(ParseError):
            parse("struct { x: u8 }")

    def rejects_unclosed_brace(expect):
        with pytest.raises(ParseError) as exc:
            parse(
                """
                struct Broken {
                    x: u32
            """
            )
        expect(exc.value.line is not None) == True

    def parses_empty_input(expect):
        expect(parse("")) == []
