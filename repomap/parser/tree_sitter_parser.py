"""
Tree-sitter-based code parsing module.

This module parses JavaScript/TypeScript source with tree-sitter grammars
from the tree_sitter_language_pack package and returns the syntax tree
together with the language it was parsed as. File content is passed in
as bytes: reading it is the caller's job, so parsing never touches the
filesystem and can be driven from synchronous or asynchronous code alike.
"""

from pathlib import PurePath
from typing import Tuple

from tree_sitter import Tree
from tree_sitter_language_pack import get_parser as get_ts_parser

from repomap.parser.exceptions import ParseError, UnsupportedLanguageError
from repomap.parser.file_types import SUPPORTED_EXTENSIONS, FileTypes

FILE_TYPE_TO_LANG = {
    FileTypes.JAVASCRIPT: "javascript",
    FileTypes.TYPESCRIPT: "typescript",
    FileTypes.TSX: "tsx",
}


def support_file(file: PurePath | str) -> bool:
    """Check if the file is supported by tree-sitter."""
    file_type = FileTypes.from_path(file)
    return file_type in FILE_TYPE_TO_LANG


def parse_source(content: bytes, file_path: PurePath | str) -> Tuple[Tree, str]:
    """Parse file content with the grammar matching the file's extension.

    Args:
        content: Raw file content.
        file_path: Path of the file, used for grammar selection and error reporting.

    Returns:
        Tuple of (parsed Tree-sitter Tree, language string).

    Raises:
        UnsupportedLanguageError: If the file type is not supported.
        ParseError: If the grammar cannot be loaded or the tree contains syntax errors.
    """
    file_type = FileTypes.from_path(file_path)
    lang = FILE_TYPE_TO_LANG.get(file_type)

    if lang is None:
        raise UnsupportedLanguageError(str(file_path), SUPPORTED_EXTENSIONS)

    try:
        lang_parser = get_ts_parser(lang)
        tree = lang_parser.parse(content)
    except Exception as e:
        raise ParseError(f"Failed to parse file: {e}", file_path=str(file_path), language=lang) from e

    if tree.root_node.has_error:
        line = _first_error_line(tree)
        raise ParseError(
            f"Syntax error near line {line}",
            file_path=str(file_path),
            language=lang,
        )

    return tree, lang


def _first_error_line(tree: Tree) -> int:
    """Return the 1-based line of the first ERROR or MISSING node in the tree."""
    stack = [tree.root_node]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        # Only error-bearing subtrees can contain the error node
        stack.extend(reversed([child for child in node.children if child.has_error or child.is_missing]))
    return tree.root_node.start_point[0] + 1
