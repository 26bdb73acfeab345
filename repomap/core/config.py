from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = "INFO"
    log_format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

    # Directory names that are never walked into
    excluded_dirs: frozenset[str] = frozenset({
        "node_modules",
        ".git",
        ".svn",
        ".hg",
        "dist",
        "build",
        "out",
        "vendor",
        "coverage",
        ".next",
        ".nuxt",
        ".cache",
        ".vscode",
        ".idea",
        "__pycache__",
        "bower_components",
    })
    excluded_files: frozenset[str] = frozenset({
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
    })

    # Files above this size are skipped (minified bundles, generated code)
    max_file_size_bytes: int = 2_000_000
    max_tree_depth: int = 500
    include_reference_text: bool = True

    model_config = SettingsConfigDict(
        env_prefix="REPO_MAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
