"""Data models for parsed Java declarations and expressions.

Expressions form a closed set of variants. Consumers dispatch on the
variant with ``isinstance`` and walk the tree with :func:`iter_tree`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, Union

PRIMITIVE_TYPES = frozenset(
    {"void", "boolean", "byte", "char", "short", "int", "long", "float", "double"}
)


class TypeKind(str, Enum):
    """Kinds of type declarations."""

    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    RECORD = "record"
    ANNOTATION = "annotation"


# ----------------------------------------------------------------------
# Types and annotations
# ----------------------------------------------------------------------


@dataclass
class Annotation:
    """An annotation usage such as ``@Valid`` or ``@Column(name = "x")``."""

    name: str
    text: str = ""

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]


@dataclass
class TypeRef:
    """A reference to a type as written in source, generics included."""

    name: str
    arguments: list[TypeRef] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)
    dimensions: int = 0

    @property
    def is_primitive(self) -> bool:
        return self.name in PRIMITIVE_TYPES

    @property
    def is_void(self) -> bool:
        return self.name == "void" and self.dimensions == 0

    @property
    def is_var(self) -> bool:
        return self.name == "var"

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    def iter_names(self) -> Iterator[str]:
        """Yield every non-primitive type name, including generic arguments."""
        if not self.is_primitive and not self.is_var and self.name != "?":
            yield self.name
        for arg in self.arguments:
            yield from arg.iter_names()

    def __str__(self) -> str:
        text = self.name
        if self.arguments:
            text += "<" + ", ".join(str(a) for a in self.arguments) + ">"
        return text + "[]" * self.dimensions


def clean_type_name(text: str) -> str:
    """Strip whitespace and generic arguments from a written type name."""
    name = re.sub(r"\s+", "", text)
    while "<" in name:
        stripped = re.sub(r"<[^<>]*>", "", name)
        if stripped == name:
            break
        name = stripped
    return name


# ----------------------------------------------------------------------
# Expressions
# ----------------------------------------------------------------------


class Expr:
    """Base class for expression variants."""

    def children(self) -> list[Expr]:
        return []


@dataclass(eq=False)
class NameRef(Expr):
    """A bare identifier: a local, a field, or a type used as a scope."""

    name: str


@dataclass(eq=False)
class This(Expr):
    pass


@dataclass(eq=False)
class Super(Expr):
    pass


@dataclass(eq=False)
class Literal(Expr):
    text: str = ""


@dataclass(eq=False)
class FieldAccess(Expr):
    object: Expr
    field: str

    def children(self) -> list[Expr]:
        return [self.object]


@dataclass(eq=False)
class MethodCall(Expr):
    name: str
    scope: Expr | None = None
    arguments: list[Expr] = field(default_factory=list)

    @property
    def arity(self) -> int:
        return len(self.arguments)

    def children(self) -> list[Expr]:
        return ([self.scope] if self.scope is not None else []) + list(self.arguments)


@dataclass(eq=False)
class ObjectCreation(Expr):
    """``new T(args)``; anonymous class bodies are flattened into ``body``."""

    type: TypeRef
    arguments: list[Expr] = field(default_factory=list)
    body: list[Expr] = field(default_factory=list)

    @property
    def arity(self) -> int:
        return len(self.arguments)

    def children(self) -> list[Expr]:
        return list(self.arguments) + list(self.body)


@dataclass(eq=False)
class ExplicitConstructorCall(Expr):
    """``this(...)`` or ``super(...)`` inside a constructor."""

    target: str
    arguments: list[Expr] = field(default_factory=list)

    @property
    def arity(self) -> int:
        return len(self.arguments)

    def children(self) -> list[Expr]:
        return list(self.arguments)


@dataclass(eq=False)
class MethodReference(Expr):
    """``Scope::name``; the arity is unknown at the reference site."""

    scope: Expr
    name: str

    def children(self) -> list[Expr]:
        return [self.scope]


@dataclass(eq=False)
class VariableDecl(Expr):
    """Local declaration; ``values`` is aligned with ``names`` (None = no initializer)."""

    type: TypeRef | None
    names: list[str] = field(default_factory=list)
    values: list[Expr | None] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)

    def children(self) -> list[Expr]:
        return [v for v in self.values if v is not None]


@dataclass(eq=False)
class Lambda(Expr):
    parameters: list[Parameter] = field(default_factory=list)
    body: Expr | None = None

    def children(self) -> list[Expr]:
        return [self.body] if self.body is not None else []


@dataclass(eq=False)
class TypeExpr(Expr):
    """A type used inside an expression: casts, instanceof, class literals, annotations."""

    type: TypeRef


@dataclass(eq=False)
class BinaryExpr(Expr):
    left: Expr
    right: Expr
    operator: str = ""

    def children(self) -> list[Expr]:
        return [self.left, self.right]


@dataclass(eq=False)
class UnaryExpr(Expr):
    operand: Expr
    operator: str = ""

    def children(self) -> list[Expr]:
        return [self.operand]


@dataclass(eq=False)
class Block(Expr):
    """Any statement or expression with no edge semantics of its own."""

    items: list[Expr] = field(default_factory=list)

    def children(self) -> list[Expr]:
        return list(self.items)


def iter_tree(root: Expr) -> Iterator[Expr]:
    """Pre-order walk over an expression tree using an explicit stack."""
    stack = [root]
    while stack:
        expr = stack.pop()
        yield expr
        stack.extend(reversed(expr.children()))


# ----------------------------------------------------------------------
# Declarations
# ----------------------------------------------------------------------


@dataclass
class ImportDecl:
    """A single import declaration."""

    name: str
    static: bool = False
    asterisk: bool = False

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    @property
    def owner_name(self) -> str:
        """For static imports, the type that owns the imported member."""
        return self.name.rsplit(".", 1)[0]

    def __str__(self) -> str:
        prefix = "import static " if self.static else "import "
        suffix = ".*" if self.asterisk else ""
        return f"{prefix}{self.name}{suffix};"


@dataclass(eq=False)
class Parameter:
    name: str
    type: TypeRef | None = None
    annotations: list[Annotation] = field(default_factory=list)
    varargs: bool = False


@dataclass(eq=False)
class FieldDecl:
    """A field declaration; one declaration may introduce several variables."""

    names: list[str]
    type: TypeRef
    annotations: list[Annotation] = field(default_factory=list)
    initializers: list[Expr] = field(default_factory=list)
    text: str = ""
    owner: TypeDecl | None = field(default=None, repr=False)

    @property
    def name(self) -> str:
        return self.names[0]


@dataclass(eq=False)
class MethodDecl:
    """A method or constructor declaration."""

    name: str
    parameters: list[Parameter] = field(default_factory=list)
    return_type: TypeRef | None = None  # None for void and for constructors
    annotations: list[Annotation] = field(default_factory=list)
    throws: list[TypeRef] = field(default_factory=list)
    body: list[Expr] = field(default_factory=list)
    text: str = ""
    is_constructor: bool = False
    owner: TypeDecl | None = field(default=None, repr=False)

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def is_varargs(self) -> bool:
        return bool(self.parameters) and self.parameters[-1].varargs

    def has_annotation(self, name: str) -> bool:
        return any(a.simple_name == name for a in self.annotations)


@dataclass(eq=False)
class EnumConstant:
    """One enum constant; its arguments select the enum constructor it runs."""

    name: str
    arguments: list[Expr] = field(default_factory=list)
    body: list[Expr] = field(default_factory=list)
    owner: TypeDecl | None = field(default=None, repr=False)

    @property
    def arity(self) -> int:
        return len(self.arguments)


@dataclass(eq=False)
class Initializer:
    """A static or instance initializer block."""

    body: list[Expr] = field(default_factory=list)
    static: bool = False
    text: str = ""
    owner: TypeDecl | None = field(default=None, repr=False)


@dataclass(eq=False)
class TypeDecl:
    """A type declaration and its members. Member types hang off ``nested_types``."""

    name: str
    kind: TypeKind = TypeKind.CLASS
    qualified_name: str = ""
    header: str = ""  # modifiers, annotations and signature up to the body brace
    preamble: str = ""  # enum constants / annotation type elements, kept verbatim
    annotations: list[Annotation] = field(default_factory=list)
    superclass: TypeRef | None = None
    interfaces: list[TypeRef] = field(default_factory=list)
    components: list[Parameter] = field(default_factory=list)  # record components
    constants: list[EnumConstant] = field(default_factory=list)
    fields: list[FieldDecl] = field(default_factory=list)
    initializers: list[Initializer] = field(default_factory=list)
    methods: list[MethodDecl] = field(default_factory=list)
    constructors: list[MethodDecl] = field(default_factory=list)
    nested_types: list[TypeDecl] = field(default_factory=list)
    indent: int = 0
    outer: TypeDecl | None = field(default=None, repr=False)
    source_file: SourceFile | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.qualified_name:
            return
        if self.outer is not None:
            self.qualified_name = f"{self.outer.qualified_name}.{self.name}"
        else:
            package = self.source_file.package if self.source_file else ""
            self.qualified_name = f"{package}.{self.name}" if package else self.name

    @property
    def supertypes(self) -> list[TypeRef]:
        return ([self.superclass] if self.superclass else []) + list(self.interfaces)

    @property
    def top_level(self) -> TypeDecl:
        current = self
        while current.outer is not None:
            current = current.outer
        return current

    def enclosing_types(self) -> list[TypeDecl]:
        """This type followed by every type it is nested in, innermost first."""
        chain = []
        current: TypeDecl | None = self
        while current is not None:
            chain.append(current)
            current = current.outer
        return chain

    def iter_types(self) -> Iterator[TypeDecl]:
        """This type and all of its member types, depth first."""
        yield self
        for nested in self.nested_types:
            yield from nested.iter_types()

    def get_field(self, name: str) -> FieldDecl | None:
        for fd in self.fields:
            if name in fd.names:
                return fd
        return None

    def get_constant(self, name: str) -> EnumConstant | None:
        return next((c for c in self.constants if c.name == name), None)

    def get_nested(self, name: str) -> TypeDecl | None:
        return next((t for t in self.nested_types if t.name == name), None)

    def methods_named(self, name: str) -> list[MethodDecl]:
        return [m for m in self.methods if m.name == name]


@dataclass(eq=False)
class SourceFile:
    """All declarations extracted from a single .java file."""

    path: str
    package: str = ""
    imports: list[ImportDecl] = field(default_factory=list)
    types: list[TypeDecl] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def all_types(self) -> Iterator[TypeDecl]:
        for type_decl in self.types:
            yield from type_decl.iter_types()


Declaration = Union[TypeDecl, MethodDecl, FieldDecl]


def detect_language(file_path: str) -> str | None:
    """Only Java sources are indexed."""
    return "java" if Path(file_path).suffix.lower() == ".java" else None
