"""
Run-scoped symbol index.

The index accumulates, file by file, what the tag extractor learns about
the repository:

  * defined symbols: plain name -> where it was last defined
  * typed definitions: "name:type" -> where it was last defined, plus the
    same table keyed per file for file-aware lookups
  * export map: repo-relative file -> names it exports
  * import resolver: local alias -> "source_file#exported_name"

Names are not scope-qualified. When two files define the same name, the
last processed definition wins for plain-name lookups; this is a
deliberate approximation, not a scope-correct resolver.

The index only grows. It is created empty when an analysis run starts and
frozen once reference resolution begins; writes after that point raise
SymbolIndexFrozenError.
"""

import posixpath
from dataclasses import dataclass, field

from repomap.parser.file_types import SUPPORTED_EXTENSIONS
from repomap.parser.tags import TagType


class SymbolIndexFrozenError(RuntimeError):
    """Raised when the index is written to after reference resolution started."""


@dataclass(frozen=True)
class SymbolLocation:
    """Where a symbol was defined.

    Attributes:
        file: repo-relative path of the defining file
        line: 1-indexed start line of the definition
    """
    file: str
    line: int


@dataclass(frozen=True)
class ImportAlias:
    """A resolved import binding.

    Attributes:
        source_file: repo-relative path of the exporting file
        exported_name: name under which the source file exports the binding
    """
    source_file: str
    exported_name: str

    def __str__(self) -> str:
        return f"{self.source_file}#{self.exported_name}"


def definition_key(name: str, tag_type: TagType | str) -> str:
    return f"{name}:{tag_type}"


@dataclass
class SymbolIndex:
    """Accumulates definitions, exports and import aliases for one run."""

    defined_symbols: dict[str, SymbolLocation] = field(default_factory=dict)
    definitions: dict[str, SymbolLocation] = field(default_factory=dict)
    definitions_by_file: dict[tuple[str, str], SymbolLocation] = field(default_factory=dict)
    exports: dict[str, set[str]] = field(default_factory=dict)
    default_exports: dict[str, str] = field(default_factory=dict)
    import_resolver: dict[str, str] = field(default_factory=dict)
    frozen: bool = False

    # Recording

    def record_definition(self, name: str, tag_type: TagType | str, file: str, line: int) -> None:
        """Record that ``name`` of ``tag_type`` is defined in ``file`` at ``line``.

        Re-recording the same fact is a no-op. A different file defining the
        same name replaces the previous entry (last writer wins).
        """
        self._ensure_writable()
        location = SymbolLocation(file=file, line=line)
        key = definition_key(name, tag_type)
        self.defined_symbols[name] = location
        self.definitions[key] = location
        self.definitions_by_file[(file, key)] = location

    def record_export(self, file: str, exported_name: str, local_name: str | None = None) -> None:
        """Record that ``file`` exports ``exported_name``.

        For ``default`` exports, ``local_name`` is the name of the binding
        behind the default export, when it has one.
        """
        self._ensure_writable()
        self.exports.setdefault(file, set()).add(exported_name)
        if exported_name == "default" and local_name:
            self.default_exports[file] = local_name

    def resolve_import_alias(self, local_name: str, source_file: str, exported_name: str) -> bool:
        """Register ``local_name`` as an alias of ``source_file#exported_name``.

        The alias is only registered when the source file is already known to
        export the name. Returns whether an alias is now registered.
        """
        self._ensure_writable()
        if exported_name not in self.exports.get(source_file, ()):
            return False
        self.import_resolver[local_name] = str(ImportAlias(source_file, exported_name))
        return True

    def freeze(self) -> None:
        self.frozen = True

    def _ensure_writable(self) -> None:
        if self.frozen:
            raise SymbolIndexFrozenError("Symbol index is read-only once reference resolution has started")

    # Lookups

    def exports_of(self, file: str) -> frozenset[str]:
        return frozenset(self.exports.get(file, ()))

    def exports_name(self, file: str, exported_name: str) -> bool:
        return exported_name in self.exports.get(file, ())

    def defined_symbol(self, name: str) -> SymbolLocation | None:
        return self.defined_symbols.get(name)

    def lookup_alias(self, local_name: str) -> ImportAlias | None:
        resolved = self.import_resolver.get(local_name)
        if resolved is None:
            return None
        source_file, _, exported_name = resolved.rpartition("#")
        return ImportAlias(source_file=source_file, exported_name=exported_name)

    def lookup_definition(
        self,
        name: str,
        tag_type: TagType | str,
        prefer_file: str | None = None,
    ) -> SymbolLocation | None:
        """Find where ``name`` of ``tag_type`` is defined.

        When ``prefer_file`` is given and defines the symbol, that definition
        is returned; otherwise the last recorded definition is.
        """
        key = definition_key(name, tag_type)
        if prefer_file is not None:
            location = self.definitions_by_file.get((prefer_file, key))
            if location is not None:
                return location
        return self.definitions.get(key)

    def resolve_module(self, importer: str, specifier: str) -> str | None:
        """Resolve an import specifier to a repo-relative file known to export names.

        Only relative specifiers (``./x``, ``../x``) are resolved; package
        imports are external to the repository. Tries, in order: the
        specifier as written, the specifier with each supported extension,
        then an ``index`` file inside the specifier's directory.

        Args:
            importer: repo-relative path of the importing file
            specifier: the module string from the import statement

        Returns:
            The repo-relative path of the exporting file, or None.
        """
        if not (specifier.startswith("./") or specifier.startswith("../")):
            return None

        base = posixpath.normpath(posixpath.join(posixpath.dirname(importer), specifier))
        if base.startswith(".."):
            return None

        candidates = [base]
        stem, ext = posixpath.splitext(base)
        if ext in SUPPORTED_EXTENSIONS:
            # ESM TypeScript imports name the emitted ".js" file
            candidates.extend(f"{stem}{other}" for other in SUPPORTED_EXTENSIONS)
        candidates.extend(f"{base}{ext}" for ext in SUPPORTED_EXTENSIONS)
        candidates.extend(posixpath.join(base, f"index{ext}") for ext in SUPPORTED_EXTENSIONS)

        for candidate in candidates:
            if candidate in self.exports:
                return candidate
        return None
