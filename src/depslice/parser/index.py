"""In-memory index over parsed Java sources.

Answers the name-resolution questions the solver asks while walking:
which import (if any) a simple name refers to, which declaration a seed
names, and which method a call site most likely invokes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from depslice.config import IndexerConfig
from depslice.exceptions import IndexingError
from depslice.parser.core import parse_directory
from depslice.parser.models import (
    Declaration,
    EnumConstant,
    ExplicitConstructorCall,
    FieldDecl,
    ImportDecl,
    MethodCall,
    MethodDecl,
    ObjectCreation,
    SourceFile,
    TypeDecl,
    TypeRef,
)

logger = logging.getLogger("depslice.index")


@dataclass
class ImportRecord:
    """The result of resolving one name in the context of a source file.

    ``import_decl`` is None when no import is needed (same file or same
    package). ``type`` / ``field`` carry the resolved declaration when it is
    part of the indexed sources; library types resolve to an import only.
    ``owner`` is the declaring type for static imports.
    """

    import_decl: ImportDecl | None = None
    type: TypeDecl | None = None
    field: FieldDecl | None = None
    owner: TypeDecl | None = None

    @property
    def name(self) -> str:
        if self.import_decl is not None:
            return self.import_decl.name
        return self.type.qualified_name if self.type else ""


class SourceIndex:
    """Pre-parsed view of a Java source tree, keyed by qualified type name."""

    def __init__(self) -> None:
        self.files: list[SourceFile] = []
        self.types: dict[str, TypeDecl] = {}

    @classmethod
    def build(
        cls,
        root: str | Path,
        config: IndexerConfig | None = None,
        progress_callback: callable | None = None,
    ) -> SourceIndex:
        """Parse every Java file under ``root`` and index it."""
        root = Path(root)
        if not root.is_dir():
            raise IndexingError(f"Source root does not exist: {root}")
        index = cls()
        for source_file in parse_directory(root, config, progress_callback):
            index.add_file(source_file)
        logger.info("Indexed %d files, %d types", len(index.files), len(index.types))
        return index

    @classmethod
    def from_sources(cls, sources: dict[str, str]) -> SourceIndex:
        """Build an index from in-memory ``{relative path: source}`` pairs."""
        from depslice.parser.core import parse_file

        index = cls()
        for path in sorted(sources):
            parsed = parse_file(path, sources[path])
            if parsed is not None:
                index.add_file(parsed)
        return index

    def add_file(self, source_file: SourceFile) -> None:
        self.files.append(source_file)
        for type_decl in source_file.all_types():
            if type_decl.qualified_name in self.types:
                logger.warning("Duplicate type %s in %s", type_decl.qualified_name, source_file.path)
                continue
            self.types[type_decl.qualified_name] = type_decl

    def get_type(self, qualified_name: str | None) -> TypeDecl | None:
        if not qualified_name:
            return None
        return self.types.get(qualified_name)

    def get_stats(self) -> dict:
        return {
            "files": len(self.files),
            "types": len(self.types),
            "parse_errors": sum(1 for f in self.files if f.errors),
        }

    # ------------------------------------------------------------------
    # Seed resolution
    # ------------------------------------------------------------------

    def resolve_declaration(self, qualified_owner: str, member_name: str) -> Declaration | None:
        """Find the declaration a seed ``Owner#member`` refers to."""
        owner = self.types.get(qualified_owner)
        if owner is None:
            return None
        methods = owner.methods_named(member_name)
        if methods:
            return methods[0]
        if member_name == owner.name and owner.constructors:
            return owner.constructors[0]
        return owner.get_field(member_name)

    # ------------------------------------------------------------------
    # Name resolution
    # ------------------------------------------------------------------

    def find_import_for(self, source_file: SourceFile, ref: str | TypeRef) -> list[ImportRecord]:
        """Resolve a simple name, or every name inside a type, to import records."""
        if isinstance(ref, TypeRef):
            names = list(ref.iter_names()) + [a.name for a in ref.annotations]
        else:
            names = [ref]
        records = []
        for name in names:
            record = self._resolve_name(source_file, name)
            if record is not None:
                records.append(record)
        return records

    def find_fully_qualified_name(self, source_file: SourceFile, simple_name: str) -> str | None:
        """Qualified name for a type name, including same-package types with no import."""
        record = self._resolve_name(source_file, simple_name)
        if record is None:
            return None
        if record.type is not None:
            return record.type.qualified_name
        imp = record.import_decl
        if imp is not None and not imp.static and not imp.asterisk:
            return imp.name
        return None

    def find_type(self, source_file: SourceFile | None, name: str) -> TypeDecl | None:
        """The indexed type a written type name refers to, if any."""
        if source_file is None or not name:
            return None
        if name in self.types:
            return self.types[name]
        return self.get_type(self.find_fully_qualified_name(source_file, name))

    def _resolve_name(self, source_file: SourceFile, name: str) -> ImportRecord | None:
        if "." in name:
            if name in self.types:
                return ImportRecord(type=self.types[name])
            # Outer.Inner or Type.CONSTANT - the head decides the import
            head, rest = name.split(".", 1)
            record = self._resolve_name(source_file, head)
            if record is not None and record.type is not None:
                nested = self.types.get(f"{record.type.qualified_name}.{rest}")
                if nested is not None:
                    return ImportRecord(import_decl=record.import_decl, type=nested)
            return record

        for imp in source_file.imports:
            if imp.asterisk or imp.simple_name != name:
                continue
            if imp.static:
                owner = self.types.get(imp.owner_name)
                fd = owner.get_field(name) if owner else None
                return ImportRecord(import_decl=imp, field=fd, owner=owner)
            return ImportRecord(import_decl=imp, type=self.types.get(imp.name))

        for type_decl in source_file.all_types():
            if type_decl.name == name:
                return ImportRecord(type=type_decl)

        fqn = f"{source_file.package}.{name}" if source_file.package else name
        if fqn in self.types:
            return ImportRecord(type=self.types[fqn])

        for imp in source_file.imports:
            if not imp.asterisk:
                continue
            if imp.static:
                owner = self.types.get(imp.name)
                if owner is not None and (owner.get_field(name) or owner.methods_named(name)):
                    return ImportRecord(import_decl=imp, field=owner.get_field(name), owner=owner)
            else:
                candidate = self.types.get(f"{imp.name}.{name}")
                if candidate is not None:
                    return ImportRecord(import_decl=imp, type=candidate)
        return None

    # ------------------------------------------------------------------
    # Member lookup
    # ------------------------------------------------------------------

    def supertypes_of(self, type_decl: TypeDecl) -> list[TypeDecl]:
        """Indexed direct supertypes, superclass first."""
        result = []
        for ref in type_decl.supertypes:
            resolved = self.find_type(type_decl.source_file, ref.name)
            if resolved is not None and resolved is not type_decl:
                result.append(resolved)
        return result

    def superclass_of(self, type_decl: TypeDecl) -> TypeDecl | None:
        if type_decl.superclass is None:
            return None
        return self.find_type(type_decl.source_file, type_decl.superclass.name)

    def _hierarchy(self, type_decl: TypeDecl) -> list[TypeDecl]:
        """The type followed by its indexed ancestors, breadth first."""
        seen: set[int] = set()
        order = []
        queue = [type_decl]
        while queue:
            current = queue.pop(0)
            if id(current) in seen:
                continue
            seen.add(id(current))
            order.append(current)
            queue.extend(self.supertypes_of(current))
        return order

    def find_method(self, owner: TypeDecl, name: str, arity: int) -> MethodDecl | None:
        """Best match by name and argument count, searching up the hierarchy."""
        for type_decl in self._hierarchy(owner):
            match = _match_callable(type_decl.methods_named(name), arity)
            if match is not None:
                return match
        return None

    def find_method_declaration(self, call: MethodCall, owner: TypeDecl) -> MethodDecl | None:
        """Best-effort call-site-to-declaration matching.

        No type checking is done: the first declaration with a matching name
        and argument count wins, so ambiguous overloads may resolve to the
        wrong candidate.
        """
        return self.find_method(owner, call.name, call.arity)

    def find_constructor_declaration(
        self,
        creation: ObjectCreation | ExplicitConstructorCall | EnumConstant,
        type_decl: TypeDecl,
    ) -> MethodDecl | None:
        return _match_callable(type_decl.constructors, creation.arity)

    def find_field(self, owner: TypeDecl, name: str) -> FieldDecl | None:
        """A field declared on the type or inherited from an indexed supertype."""
        for type_decl in self._hierarchy(owner):
            fd = type_decl.get_field(name)
            if fd is not None:
                return fd
        return None


def _match_callable(candidates: list[MethodDecl], arity: int) -> MethodDecl | None:
    for candidate in candidates:
        if not candidate.is_varargs and candidate.arity == arity:
            return candidate
    for candidate in candidates:
        if candidate.is_varargs and arity >= candidate.arity - 1:
            return candidate
    return None
