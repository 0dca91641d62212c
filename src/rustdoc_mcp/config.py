"""Configuration settings for rustdoc-mcp."""

from pathlib import Path

from pydantic_settings import BaseSettings


def _default_data_dir() -> Path:
    """Get default data directory (~/.rustdoc-mcp/)."""
    return Path.home() / ".rustdoc-mcp"


class Settings(BaseSettings):
    """rustdoc-mcp configuration.

    Environment variables:
    - DOCS_HOST: Remote documentation host (default: docs.rs)
    - DOCS_VERSION: Crate version segment used in remote URLs (default: latest)
    - HTTP_TIMEOUT: Remote fetch timeout in seconds (default: 30)
    - CACHE_DIR: Data directory (default: ~/.rustdoc-mcp)
    - DOCS_DB_PATH: Store database path (default: <CACHE_DIR>/rustdoc.db)
    - WORKSPACE_DIRS: Comma-separated project directories, first one wins
        when locating the Cargo workspace root (default: current directory)
    - CRAWL_MAX_PAGES: Upper bound on pages visited per --index crawl
    - SEARCH_LIMIT: Max completions returned by the store
    """

    # Remote docs
    docs_host: str = "docs.rs"
    docs_version: str = "latest"
    http_timeout: int = 30
    user_agent: str = "rustdoc-mcp/1.0"
    error_snippet_chars: int = 200

    # Store
    cache_dir: str = ""  # Default: ~/.rustdoc-mcp
    docs_db_path: str = ""  # Default: <cache_dir>/rustdoc.db
    search_limit: int = 20

    # Workspace
    workspace_dirs: str = ""  # Comma-separated, default: cwd
    manifest_name: str = "Cargo.toml"

    # Crawler
    crawl_max_pages: int = 5000

    # Logging
    log_level: str = "INFO"

    model_config = {"env_prefix": "", "case_sensitive": False}

    # --- Path helpers ---

    def get_data_dir(self) -> Path:
        """Get data directory.

        Uses CACHE_DIR if set, otherwise ~/.rustdoc-mcp/.
        """
        if self.cache_dir:
            return Path(self.cache_dir).expanduser()
        return _default_data_dir()

    def get_db_path(self) -> Path:
        """Get resolved store database path."""
        if self.docs_db_path:
            return Path(self.docs_db_path).expanduser()
        return self.get_data_dir() / "rustdoc.db"

    def get_workspace_dirs(self) -> list[Path]:
        """Project directories in priority order (cwd when unset)."""
        dirs = [
            Path(d.strip()).expanduser()
            for d in self.workspace_dirs.split(",")
            if d.strip()
        ]
        return dirs or [Path.cwd()]


settings = Settings()
