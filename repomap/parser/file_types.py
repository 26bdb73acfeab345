from pathlib import PurePath
import enum

class FileTypes(enum.StrEnum):
    """Enum of the tree-sitter file types the pipeline can extract tags from"""

    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    TSX = "tsx"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_path(cls, path: PurePath | str):
        suffix = PurePath(path).suffix.lower()

        match suffix:
            case ".js" | ".mjs" | ".cjs" | ".jsx":
                return cls.JAVASCRIPT
            case ".ts" | ".mts" | ".cts":
                return cls.TYPESCRIPT
            case ".tsx":
                return cls.TSX
            case _:
                return cls.UNKNOWN


# Extensions tried, in order, when an import specifier omits one
SUPPORTED_EXTENSIONS: tuple[str, ...] = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".mts",
    ".cts",
)
