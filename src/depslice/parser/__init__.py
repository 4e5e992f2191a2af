"""Java source parsing and indexing for DepSlice."""

from depslice.parser.core import parse_directory, parse_file
from depslice.parser.index import ImportRecord, SourceIndex
from depslice.parser.models import (
    FieldDecl,
    ImportDecl,
    MethodDecl,
    SourceFile,
    TypeDecl,
    TypeRef,
)

__all__ = [
    "FieldDecl",
    "ImportDecl",
    "ImportRecord",
    "MethodDecl",
    "SourceFile",
    "SourceIndex",
    "TypeDecl",
    "TypeRef",
    "parse_file",
    "parse_directory",
]
