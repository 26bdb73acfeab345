"""
Custom exceptions for parsing and tag extraction.

Every exception here is scoped to a single file: callers catch them at the
file boundary, log them, count them, and continue with the next file.
"""


class ParseError(Exception):
    """Exception raised when a file cannot be parsed into a usable syntax tree.

    This can occur when:
      - Tree-sitter reports syntax errors in the tree
      - The grammar for the file type cannot be loaded
      - Tag extraction hits an unexpected tree shape

    Attributes:
        message: Explanation of the error
        file_path: The repo-relative file being parsed (if available)
        language: The grammar used (if available)
    """

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        language: str | None = None,
    ):
        self.message = message
        self.file_path = file_path
        self.language = language

        details = []
        if language:
            details.append(f"language={language}")
        if file_path:
            details.append(f"file={file_path}")

        full_message = message
        if details:
            full_message = f"{message} [{', '.join(details)}]"

        super().__init__(full_message)


class TagExtractionError(ParseError):
    """Exception raised when the tag walk cannot complete for a file.

    Raised, for example, when the syntax tree is nested deeper than the
    configured maximum traversal depth.
    """


class UnsupportedLanguageError(Exception):
    """Exception raised for a file outside the supported-language allowlist.

    Attributes:
        file_path: The offending file
        supported_extensions: Extensions the pipeline accepts
    """

    def __init__(
        self,
        file_path: str,
        supported_extensions: tuple[str, ...] | None = None,
    ):
        self.file_path = file_path
        self.supported_extensions = supported_extensions or ()

        message = f"Unsupported file type for tag extraction: '{file_path}'"
        if self.supported_extensions:
            message += f". Supported extensions: {', '.join(self.supported_extensions)}"

        super().__init__(message)


class FileAccessError(Exception):
    """Exception raised when a file or directory cannot be stat'ed or read.

    Attributes:
        path: The path that could not be accessed
        reason: The underlying OS error message
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot access {path}: {reason}")
