"""Expression walkers that turn member bodies into dependency edges.

Two passes run over every body. The variable pass fills the local symbol
table and resolves declared types. The call pass then looks at calls,
object creation, field access and bare names. Locals are known before
any call is examined, so a parameter or local is never mistaken for a
static reference.

Resolution is syntax driven. A call is matched to a declaration by name
and argument count only. Scopes are typed from the locals table (a
``var`` local takes the type of its initializer), from fields, from enum
constants, from member types, from constructed types, and from the
declared return type of an inner call. Unqualified names are looked up
in the enclosing type first and then in the types around it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from depslice.exceptions import DepsolverError
from depslice.graph.node import EdgeKind, GraphNode
from depslice.parser.index import SourceIndex
from depslice.parser.models import (
    BinaryExpr,
    Block,
    ExplicitConstructorCall,
    Expr,
    FieldAccess,
    FieldDecl,
    Lambda,
    Literal,
    MethodCall,
    MethodDecl,
    MethodReference,
    NameRef,
    ObjectCreation,
    SourceFile,
    Super,
    This,
    TypeDecl,
    TypeExpr,
    TypeRef,
    UnaryExpr,
    VariableDecl,
    iter_tree,
)

if TYPE_CHECKING:
    from depslice.solver.solver import DepSolver

logger = logging.getLogger("depslice.visitors")


@dataclass
class TraversalContext:
    """Everything a walker needs for one member visit."""

    solver: DepSolver
    node: GraphNode
    locals: dict[str, TypeRef | None] = field(default_factory=dict)

    @property
    def index(self) -> SourceIndex:
        return self.solver.index

    @property
    def enclosing_type(self) -> TypeDecl:
        return self.node.enclosing_type

    @property
    def source_file(self) -> SourceFile | None:
        return self.node.source_file

    def push(self, decl, kind: EdgeKind) -> None:
        self.solver.push(decl, self.node, kind)


def visit_member(ctx: TraversalContext, decl: MethodDecl) -> None:
    """Walk a method or constructor with a fresh local symbol table."""
    ctx.locals.clear()
    for param in decl.parameters:
        _declare(ctx, param.name, param.type)
    visit_body(ctx, decl.body)


def visit_body(ctx: TraversalContext, body: Iterable[Expr]) -> None:
    expressions = [expr for root in body for expr in iter_tree(root)]
    for expr in expressions:
        visit_variables(ctx, expr)
    for expr in expressions:
        visit_calls(ctx, expr)


# ----------------------------------------------------------------------
# Variable pass
# ----------------------------------------------------------------------


def visit_variables(ctx: TraversalContext, expr: Expr) -> None:
    if isinstance(expr, VariableDecl):
        for ann in expr.annotations:
            ctx.solver.resolve_annotation(ctx.node, ann)
        for name, value in zip(expr.names, expr.values):
            if expr.type is not None and expr.type.is_var:
                # var: the initializer decides the type
                inferred = scope_type(ctx, value) if value is not None else None
                ctx.locals[name] = TypeRef(inferred.qualified_name) if inferred else None
            else:
                _declare(ctx, name, expr.type)
            if isinstance(value, NameRef) and value.name not in ctx.locals:
                resolve_bare_name(ctx, value.name)
    elif isinstance(expr, Lambda):
        for param in expr.parameters:
            _declare(ctx, param.name, param.type)


def _declare(ctx: TraversalContext, name: str, type_ref: TypeRef | None) -> None:
    ctx.locals[name] = type_ref
    if type_ref is not None:
        ctx.solver.solve_type(ctx.node, type_ref)


# ----------------------------------------------------------------------
# Call pass
# ----------------------------------------------------------------------


def visit_calls(ctx: TraversalContext, expr: Expr) -> None:
    """Dispatch one expression to its handler."""
    if isinstance(expr, MethodCall):
        _method_call(ctx, expr)
    elif isinstance(expr, ObjectCreation):
        _object_creation(ctx, expr)
    elif isinstance(expr, ExplicitConstructorCall):
        _explicit_constructor_call(ctx, expr)
    elif isinstance(expr, MethodReference):
        _method_reference(ctx, expr)
    elif isinstance(expr, FieldAccess):
        resolve_field_access(ctx, expr)
    elif isinstance(expr, NameRef):
        if expr.name not in ctx.locals:
            resolve_bare_name(ctx, expr.name)
    elif isinstance(expr, TypeExpr):
        ctx.solver.solve_type(ctx.node, expr.type)
    elif isinstance(expr, (This, Super, Literal, VariableDecl, Lambda, BinaryExpr, UnaryExpr, Block)):
        pass
    else:
        raise DepsolverError(f"Unsupported expression {type(expr).__name__}", str(ctx.node.key))


def _method_call(ctx: TraversalContext, call: MethodCall) -> None:
    scope = call.scope
    if scope is None or isinstance(scope, This):
        md = _implicit_method(ctx, call)
        if md is not None:
            ctx.push(md, EdgeKind.CALLS)
        elif scope is None:
            _static_import_call(ctx, call)
        return

    # Named scopes (fields, statics) and nested calls are picked up when the
    # walk reaches the scope expression itself; here only the callee is found.
    owner = scope_type(ctx, scope)
    if owner is None:
        logger.debug("No declaring type for %s() in %s", call.name, ctx.node.key)
        return
    md = ctx.index.find_method_declaration(call, owner)
    if md is not None:
        ctx.push(md, EdgeKind.CALLS)


def _static_import_call(ctx: TraversalContext, call: MethodCall) -> None:
    for record in ctx.index.find_import_for(ctx.source_file, call.name):
        if record.owner is None:
            continue
        md = ctx.index.find_method_declaration(call, record.owner)
        if md is not None:
            if record.import_decl is not None:
                ctx.node.add_import(record.import_decl)
            ctx.push(md, EdgeKind.CALLS)


def _object_creation(ctx: TraversalContext, creation: ObjectCreation) -> None:
    ctx.solver.solve_type(ctx.node, creation.type, EdgeKind.CREATES)
    created = ctx.index.find_type(ctx.source_file, creation.type.name)
    if created is None:
        return
    ctor = ctx.index.find_constructor_declaration(creation, created)
    if ctor is not None:
        ctx.push(ctor, EdgeKind.CREATES)


def _explicit_constructor_call(ctx: TraversalContext, call: ExplicitConstructorCall) -> None:
    if call.target == "super":
        target = ctx.index.superclass_of(ctx.enclosing_type)
    else:
        target = ctx.enclosing_type
    if target is None:
        return
    ctor = ctx.index.find_constructor_declaration(call, target)
    if ctor is not None:
        ctx.push(ctor, EdgeKind.CALLS)


def _method_reference(ctx: TraversalContext, ref: MethodReference) -> None:
    owner = scope_type(ctx, ref.scope)
    if owner is None:
        return
    if ref.name == "new":
        for ctor in owner.constructors:
            ctx.push(ctor, EdgeKind.CREATES)
        return
    for md in owner.methods_named(ref.name):
        ctx.push(md, EdgeKind.CALLS)


def resolve_field_access(ctx: TraversalContext, access: FieldAccess) -> None:
    """Keep what ``x.f`` names when its owner is an indexed type.

    That is a field, an enum constant (which keeps the enum), or a member
    type written as ``Outer.Inner``.
    """
    owner = scope_type(ctx, access.object)
    if owner is None:
        return
    fd = ctx.index.find_field(owner, access.field)
    if fd is not None:
        ctx.push(fd, EdgeKind.FIELD)
    elif owner.get_constant(access.field) is not None:
        ctx.push(owner, EdgeKind.TYPE)
    elif owner.get_nested(access.field) is not None:
        ctx.push(owner.get_nested(access.field), EdgeKind.TYPE)


def resolve_bare_name(ctx: TraversalContext, name: str) -> None:
    """Resolve a name that is not a local: own field, then import or static field."""
    fd = _field_in_scope(ctx, name)
    if fd is not None:
        ctx.push(fd, EdgeKind.FIELD)
        return
    if _constant_in_scope(ctx, name) is not None:
        return
    for record in ctx.index.find_import_for(ctx.source_file, name):
        ctx.solver.search_class(ctx.node, record)
        if record.field is not None:
            ctx.push(record.field, EdgeKind.FIELD)


def _implicit_method(ctx: TraversalContext, call: MethodCall) -> MethodDecl | None:
    """The method an unqualified call names, searching outward through enclosing types."""
    if isinstance(call.scope, This):
        owners = [ctx.enclosing_type]
    else:
        owners = ctx.enclosing_type.enclosing_types()
    for owner in owners:
        md = ctx.index.find_method_declaration(call, owner)
        if md is not None:
            return md
    return None


def _field_in_scope(ctx: TraversalContext, name: str) -> FieldDecl | None:
    for owner in ctx.enclosing_type.enclosing_types():
        fd = ctx.index.find_field(owner, name)
        if fd is not None:
            return fd
    return None


def _constant_in_scope(ctx: TraversalContext, name: str) -> TypeDecl | None:
    """The enclosing enum that declares a bare constant name."""
    for owner in ctx.enclosing_type.enclosing_types():
        if owner.get_constant(name) is not None:
            return owner
    return None


# ----------------------------------------------------------------------
# Scope typing
# ----------------------------------------------------------------------


def scope_type(ctx: TraversalContext, expr: Expr) -> TypeDecl | None:
    """Best-effort static type of a call or field-access scope."""
    index = ctx.index
    if isinstance(expr, This):
        return ctx.enclosing_type
    if isinstance(expr, Super):
        return index.superclass_of(ctx.enclosing_type)
    if isinstance(expr, NameRef):
        if expr.name in ctx.locals:
            declared = ctx.locals[expr.name]
            return index.find_type(ctx.source_file, declared.name) if declared else None
        fd = _field_in_scope(ctx, expr.name)
        if fd is not None:
            return index.find_type(fd.owner.source_file, fd.type.name)
        enum_type = _constant_in_scope(ctx, expr.name)
        if enum_type is not None:
            return enum_type
        # Static reference; same-package types may have no import
        return index.find_type(ctx.source_file, expr.name)
    if isinstance(expr, FieldAccess):
        owner = scope_type(ctx, expr.object)
        if owner is None:
            return _qualified_type(ctx, expr)
        fd = index.find_field(owner, expr.field)
        if fd is not None:
            return index.find_type(fd.owner.source_file, fd.type.name)
        if owner.get_constant(expr.field) is not None:
            return owner
        return owner.get_nested(expr.field)
    if isinstance(expr, MethodCall):
        if expr.scope is None or isinstance(expr.scope, This):
            md = _implicit_method(ctx, expr)
        else:
            owner = scope_type(ctx, expr.scope)
            md = index.find_method_declaration(expr, owner) if owner is not None else None
        if md is None or md.return_type is None:
            return None
        return index.find_type(md.owner.source_file, md.return_type.name)
    if isinstance(expr, ObjectCreation):
        return index.find_type(ctx.source_file, expr.type.name)
    if isinstance(expr, TypeExpr):
        return index.find_type(ctx.source_file, expr.type.name)
    return None


def _qualified_type(ctx: TraversalContext, expr: FieldAccess) -> TypeDecl | None:
    """``com.acme.Util`` written out in full."""
    parts = []
    current: Expr = expr
    while isinstance(current, FieldAccess):
        parts.append(current.field)
        current = current.object
    if not isinstance(current, NameRef):
        return None
    parts.append(current.name)
    return ctx.index.get_type(".".join(reversed(parts)))
