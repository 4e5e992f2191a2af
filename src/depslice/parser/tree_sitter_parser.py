"""Tree-sitter based Java parser.

Turns the concrete syntax tree produced by tree-sitter-java into the
declaration and expression model in :mod:`depslice.parser.models`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from depslice.parser.models import (
    Annotation,
    BinaryExpr,
    Block,
    EnumConstant,
    ExplicitConstructorCall,
    Expr,
    FieldAccess,
    FieldDecl,
    ImportDecl,
    Initializer,
    Lambda,
    Literal,
    MethodCall,
    MethodDecl,
    MethodReference,
    NameRef,
    ObjectCreation,
    Parameter,
    SourceFile,
    Super,
    This,
    TypeDecl,
    TypeExpr,
    TypeKind,
    TypeRef,
    UnaryExpr,
    VariableDecl,
    clean_type_name,
)

# Required dependency (installed with pip install depslice)
_TS_LANGUAGE_MODULE = "tree_sitter_java"

_TYPE_DECLARATIONS = {
    "class_declaration": TypeKind.CLASS,
    "interface_declaration": TypeKind.INTERFACE,
    "enum_declaration": TypeKind.ENUM,
    "record_declaration": TypeKind.RECORD,
    "annotation_type_declaration": TypeKind.ANNOTATION,
}

_TYPE_NODES = {
    "type_identifier",
    "scoped_type_identifier",
    "generic_type",
    "array_type",
    "annotated_type",
    "integral_type",
    "floating_point_type",
    "boolean_type",
    "void_type",
}

_LITERAL_NODES = {
    "decimal_integer_literal",
    "hex_integer_literal",
    "octal_integer_literal",
    "binary_integer_literal",
    "decimal_floating_point_literal",
    "hex_floating_point_literal",
    "character_literal",
    "string_literal",
    "text_block",
    "null_literal",
    "true",
    "false",
}

_ANNOTATION_NODES = {"marker_annotation", "annotation"}
_COMMENT_NODES = {"line_comment", "block_comment"}


def is_available() -> bool:
    """Check if tree-sitter and the Java grammar are available."""
    try:
        import tree_sitter  # noqa: F401

        __import__(_TS_LANGUAGE_MODULE)
    except ImportError:
        return False
    return True


def _get_language():
    """Get the tree-sitter Language object for Java."""
    from tree_sitter import Language

    module = __import__(_TS_LANGUAGE_MODULE)
    return Language(module.language())


def parse_java_file(file_path: str, source: str | None = None) -> SourceFile:
    """Parse a Java file into its package, imports and top-level types."""
    from tree_sitter import Parser

    if source is None:
        source = Path(file_path).read_text(encoding="utf-8", errors="replace")

    result = SourceFile(path=file_path)
    source_bytes = source.encode("utf-8")

    try:
        parser = Parser(_get_language())
        tree = parser.parse(source_bytes)
    except Exception as e:
        result.errors.append(f"tree-sitter parse error: {e}")
        return result

    root = tree.root_node
    if root.has_error:
        result.errors.append("syntax errors present; declarations may be incomplete")

    for child in root.named_children:
        if child.type == "package_declaration":
            result.package = _package_name(child)
        elif child.type == "import_declaration":
            result.imports.append(_parse_import(child))
        elif child.type in _TYPE_DECLARATIONS:
            result.types.append(_parse_type(child, result, source_bytes))
    return result


def _text(node) -> str:
    return node.text.decode("utf-8") if node is not None else ""


def _named(node) -> list:
    return [c for c in node.named_children if c.type not in _COMMENT_NODES]


def _member_text(node) -> str:
    """Declaration text re-indented to the column it started at."""
    return " " * node.start_point[1] + _text(node)


def _package_name(node) -> str:
    for child in node.named_children:
        if child.type in ("identifier", "scoped_identifier"):
            return _text(child)
    return ""


def _parse_import(node) -> ImportDecl:
    name = ""
    for child in node.named_children:
        if child.type in ("identifier", "scoped_identifier"):
            name = _text(child)
    return ImportDecl(
        name=name,
        static=any(c.type == "static" for c in node.children),
        asterisk=any(c.type == "asterisk" for c in node.children),
    )


# ----------------------------------------------------------------------
# Declarations
# ----------------------------------------------------------------------


def _parse_type(node, source_file: SourceFile, source: bytes, outer: TypeDecl | None = None) -> TypeDecl:
    kind = _TYPE_DECLARATIONS[node.type]
    body = node.child_by_field_name("body")
    header_end = body.start_byte if body is not None else node.end_byte
    decl = TypeDecl(
        name=_text(node.child_by_field_name("name")),
        kind=kind,
        header=source[node.start_byte:header_end].decode("utf-8").strip(),
        annotations=_annotations(node),
        indent=node.start_point[1],
        outer=outer,
        source_file=source_file,
    )

    superclass = node.child_by_field_name("superclass")
    if superclass is not None:
        types = [c for c in superclass.named_children if c.type in _TYPE_NODES]
        if types:
            decl.superclass = parse_type_ref(types[0])

    for child in node.children:
        if child.type in ("super_interfaces", "extends_interfaces"):
            for type_list in child.named_children:
                decl.interfaces.extend(
                    parse_type_ref(t) for t in type_list.named_children if t.type in _TYPE_NODES
                )

    if kind == TypeKind.RECORD:
        params = node.child_by_field_name("parameters")
        if params is not None:
            decl.components = _parse_parameters(params)

    if body is None:
        return decl

    if kind == TypeKind.ANNOTATION:
        decl.preamble = source[body.start_byte + 1:body.end_byte - 1].decode("utf-8").strip("\n").rstrip()
        return decl

    members = body
    if kind == TypeKind.ENUM:
        constants = [c for c in body.named_children if c.type == "enum_constant"]
        decl.constants = [_parse_enum_constant(c, decl) for c in constants]
        pad = " " * (decl.indent + 4)
        decl.preamble = pad + f",\n{pad}".join(_text(c) for c in constants) + ";"
        members = next(
            (c for c in body.named_children if c.type == "enum_body_declarations"), None
        )
        if members is None:
            return decl

    for member in members.named_children:
        if member.type in ("field_declaration", "constant_declaration"):
            decl.fields.append(_parse_field(member, decl))
        elif member.type == "method_declaration":
            decl.methods.append(_parse_method(member, decl))
        elif member.type == "constructor_declaration":
            decl.constructors.append(_parse_method(member, decl, constructor=True))
        elif member.type in ("static_initializer", "block"):
            decl.initializers.append(_parse_initializer(member, decl))
        elif member.type in _TYPE_DECLARATIONS:
            decl.nested_types.append(_parse_type(member, source_file, source, outer=decl))
    return decl


def _parse_enum_constant(node, owner: TypeDecl) -> EnumConstant:
    body = node.child_by_field_name("body")
    return EnumConstant(
        name=_text(node.child_by_field_name("name")),
        arguments=_arguments(node.child_by_field_name("arguments")),
        body=_class_body(body) if body is not None else [],
        owner=owner,
    )


def _parse_initializer(node, owner: TypeDecl) -> Initializer:
    block = node if node.type == "block" else next((c for c in node.named_children if c.type == "block"), None)
    return Initializer(
        body=[to_expr(stmt) for stmt in _named(block)] if block is not None else [],
        static=node.type == "static_initializer",
        text=_member_text(node),
        owner=owner,
    )


def _annotations(node) -> list[Annotation]:
    """Annotations found in a declaration's modifiers."""
    result = []
    for child in node.children:
        if child.type != "modifiers":
            continue
        for mod in child.named_children:
            if mod.type in _ANNOTATION_NODES:
                result.append(Annotation(name=_text(mod.child_by_field_name("name")), text=_text(mod)))
    return result


def _parse_field(node, owner: TypeDecl) -> FieldDecl:
    names = []
    initializers = []
    for declarator in node.children_by_field_name("declarator"):
        names.append(_text(declarator.child_by_field_name("name")))
        value = declarator.child_by_field_name("value")
        if value is not None:
            initializers.append(to_expr(value))
    return FieldDecl(
        names=names,
        type=parse_type_ref(node.child_by_field_name("type")),
        annotations=_annotations(node),
        initializers=initializers,
        text=_member_text(node),
        owner=owner,
    )


def _parse_method(node, owner: TypeDecl, constructor: bool = False) -> MethodDecl:
    return_type = None
    if not constructor:
        return_type = parse_type_ref(node.child_by_field_name("type"))
        if return_type.is_void:
            return_type = None

    throws = []
    for child in node.children:
        if child.type == "throws":
            throws.extend(parse_type_ref(t) for t in child.named_children if t.type in _TYPE_NODES)

    body_node = node.child_by_field_name("body")
    body = [to_expr(stmt) for stmt in _named(body_node)] if body_node is not None else []

    return MethodDecl(
        name=_text(node.child_by_field_name("name")),
        parameters=_parse_parameters(node.child_by_field_name("parameters")),
        return_type=return_type,
        annotations=_annotations(node),
        throws=throws,
        body=body,
        text=_member_text(node),
        is_constructor=constructor,
        owner=owner,
    )


def _parse_parameters(node) -> list[Parameter]:
    params = []
    if node is None:
        return params
    for p in node.named_children:
        if p.type == "formal_parameter":
            params.append(
                Parameter(
                    name=_text(p.child_by_field_name("name")),
                    type=parse_type_ref(p.child_by_field_name("type")),
                    annotations=_annotations(p),
                )
            )
        elif p.type == "spread_parameter":
            type_node = next((c for c in p.named_children if c.type in _TYPE_NODES), None)
            declarator = next((c for c in p.named_children if c.type == "variable_declarator"), None)
            params.append(
                Parameter(
                    name=_text(declarator.child_by_field_name("name")) if declarator else "",
                    type=parse_type_ref(type_node) if type_node is not None else None,
                    annotations=_annotations(p),
                    varargs=True,
                )
            )
    return params


def parse_type_ref(node) -> TypeRef:
    """Build a TypeRef from any tree-sitter type node."""
    kind = node.type
    if kind == "annotated_type":
        annotations = [
            Annotation(name=_text(c.child_by_field_name("name")), text=_text(c))
            for c in node.named_children
            if c.type in _ANNOTATION_NODES
        ]
        inner = [c for c in node.named_children if c.type in _TYPE_NODES]
        ref = parse_type_ref(inner[-1]) if inner else TypeRef(name=_text(node))
        ref.annotations = annotations + ref.annotations
        return ref
    if kind == "array_type":
        ref = parse_type_ref(node.child_by_field_name("element"))
        ref.dimensions += 1
        return ref
    if kind == "generic_type":
        base, *rest = node.named_children
        arguments = []
        for type_args in rest:
            if type_args.type != "type_arguments":
                continue
            for arg in type_args.named_children:
                if arg.type == "wildcard":
                    bounds = [c for c in arg.named_children if c.type in _TYPE_NODES]
                    arguments.extend(parse_type_ref(b) for b in bounds)
                elif arg.type in _TYPE_NODES:
                    arguments.append(parse_type_ref(arg))
        return TypeRef(name=clean_type_name(_text(base)), arguments=arguments)
    return TypeRef(name=clean_type_name(_text(node)))


# ----------------------------------------------------------------------
# Expressions
# ----------------------------------------------------------------------


def to_expr(node) -> Expr:
    """Convert a statement or expression node into an expression variant."""
    converter = _CONVERTERS.get(node.type)
    if converter is not None:
        return converter(node)
    if node.type in _TYPE_NODES:
        return TypeExpr(parse_type_ref(node))
    if node.type in _LITERAL_NODES:
        return Literal(_text(node))
    return Block([to_expr(c) for c in _named(node)])


def _arguments(node) -> list[Expr]:
    if node is None:
        return []
    return [to_expr(c) for c in _named(node)]


def _method_invocation(node) -> Expr:
    obj = node.child_by_field_name("object")
    return MethodCall(
        name=_text(node.child_by_field_name("name")),
        scope=to_expr(obj) if obj is not None else None,
        arguments=_arguments(node.child_by_field_name("arguments")),
    )


def _field_access(node) -> Expr:
    field_node = node.child_by_field_name("field")
    if field_node is not None and field_node.type == "this":
        # Outer.this
        return This()
    return FieldAccess(object=to_expr(node.child_by_field_name("object")), field=_text(field_node))


def _object_creation(node) -> Expr:
    body = next((c for c in node.named_children if c.type == "class_body"), None)
    return ObjectCreation(
        type=parse_type_ref(node.child_by_field_name("type")),
        arguments=_arguments(node.child_by_field_name("arguments")),
        body=_class_body(body) if body is not None else [],
    )


def _explicit_constructor_invocation(node) -> Expr:
    return ExplicitConstructorCall(
        target=_text(node.child_by_field_name("constructor")),
        arguments=_arguments(node.child_by_field_name("arguments")),
    )


def _method_reference(node) -> Expr:
    named = _named(node)
    name = _text(named[-1]) if len(named) > 1 and named[-1].type == "identifier" else "new"
    return MethodReference(scope=to_expr(named[0]), name=name)


def _variable_declaration(node) -> Expr:
    names = []
    values = []
    for declarator in node.children_by_field_name("declarator"):
        names.append(_text(declarator.child_by_field_name("name")))
        value = declarator.child_by_field_name("value")
        values.append(to_expr(value) if value is not None else None)
    return VariableDecl(
        type=parse_type_ref(node.child_by_field_name("type")),
        names=names,
        values=values,
        annotations=_annotations(node),
    )


def _enhanced_for(node) -> Expr:
    items: list[Expr] = [
        VariableDecl(
            type=parse_type_ref(node.child_by_field_name("type")),
            names=[_text(node.child_by_field_name("name"))],
            values=[None],
            annotations=_annotations(node),
        )
    ]
    for field_name in ("value", "body"):
        child = node.child_by_field_name(field_name)
        if child is not None:
            items.append(to_expr(child))
    return Block(items)


def _catch_clause(node) -> Expr:
    items: list[Expr] = []
    param = next((c for c in node.named_children if c.type == "catch_formal_parameter"), None)
    if param is not None:
        catch_type = next((c for c in param.named_children if c.type == "catch_type"), None)
        types = [parse_type_ref(t) for t in catch_type.named_children] if catch_type else []
        items.append(
            VariableDecl(
                type=types[0] if types else None,
                names=[_text(param.child_by_field_name("name"))],
                values=[None],
            )
        )
        items.extend(TypeExpr(t) for t in types[1:])
    body = node.child_by_field_name("body")
    if body is not None:
        items.append(to_expr(body))
    return Block(items)


def _resource(node) -> Expr:
    type_node = node.child_by_field_name("type")
    if type_node is None:
        return Block([to_expr(c) for c in _named(node)])
    value = node.child_by_field_name("value")
    return VariableDecl(
        type=parse_type_ref(type_node),
        names=[_text(node.child_by_field_name("name"))],
        values=[to_expr(value) if value is not None else None],
    )


def _lambda(node) -> Expr:
    params_node = node.child_by_field_name("parameters")
    if params_node.type == "identifier":
        params = [Parameter(name=_text(params_node))]
    elif params_node.type == "inferred_parameters":
        params = [Parameter(name=_text(c)) for c in params_node.named_children]
    else:
        params = _parse_parameters(params_node)
    body = node.child_by_field_name("body")
    return Lambda(parameters=params, body=to_expr(body) if body is not None else None)


def _instanceof(node) -> Expr:
    items: list[Expr] = [to_expr(node.child_by_field_name("left"))]
    right = node.child_by_field_name("right")
    if right is not None:
        type_ref = parse_type_ref(right)
        items.append(TypeExpr(type_ref))
        name = node.child_by_field_name("name")
        if name is not None:
            items.append(VariableDecl(type=type_ref, names=[_text(name)], values=[None]))
    pattern = node.child_by_field_name("pattern")
    if pattern is not None:
        items.append(to_expr(pattern))
    return Block(items)


def _binary(node) -> Expr:
    return BinaryExpr(
        left=to_expr(node.child_by_field_name("left")),
        right=to_expr(node.child_by_field_name("right")),
        operator=_text(node.child_by_field_name("operator")),
    )


def _unary(node) -> Expr:
    return UnaryExpr(
        operand=to_expr(node.child_by_field_name("operand")),
        operator=_text(node.child_by_field_name("operator")),
    )


def _annotation(node) -> Expr:
    items: list[Expr] = [TypeExpr(TypeRef(name=_text(node.child_by_field_name("name"))))]
    arguments = node.child_by_field_name("arguments")
    if arguments is not None:
        for arg in _named(arguments):
            if arg.type == "element_value_pair":
                value = arg.child_by_field_name("value")
                if value is not None:
                    items.append(to_expr(value))
            else:
                items.append(to_expr(arg))
    return Block(items)


def _local_class(node) -> Expr:
    body = node.child_by_field_name("body")
    return Block(_class_body(body) if body is not None else [])


def _class_body(node) -> list[Expr]:
    """Flatten an anonymous or local class body into walkable expressions."""
    items: list[Expr] = []
    for member in _named(node):
        if member.type in ("method_declaration", "constructor_declaration"):
            for p in _parse_parameters(member.child_by_field_name("parameters")):
                items.append(VariableDecl(type=p.type, names=[p.name], values=[None]))
            body = member.child_by_field_name("body")
            if body is not None:
                items.append(to_expr(body))
        elif member.type == "field_declaration":
            items.append(_variable_declaration(member))
        else:
            items.append(to_expr(member))
    return items


_CONVERTERS: dict[str, Callable] = {
    "identifier": lambda node: NameRef(_text(node)),
    "this": lambda node: This(),
    "super": lambda node: Super(),
    "method_invocation": _method_invocation,
    "field_access": _field_access,
    "object_creation_expression": _object_creation,
    "explicit_constructor_invocation": _explicit_constructor_invocation,
    "method_reference": _method_reference,
    "local_variable_declaration": _variable_declaration,
    "enhanced_for_statement": _enhanced_for,
    "catch_clause": _catch_clause,
    "resource": _resource,
    "lambda_expression": _lambda,
    "instanceof_expression": _instanceof,
    "binary_expression": _binary,
    "unary_expression": _unary,
    "marker_annotation": _annotation,
    "annotation": _annotation,
    "class_declaration": _local_class,
    "modifiers": lambda node: Block(
        [to_expr(c) for c in node.named_children if c.type in _ANNOTATION_NODES]
    ),
}
