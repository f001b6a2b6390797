import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()


def load_config(config_path='config.yaml'):
    # Try to open directly
    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}

    # Try to load from content_sync directory
    package_dir = Path(__file__).parent
    alt_path = package_dir / Path(config_path).name
    if alt_path.exists():
        with open(alt_path, 'r') as f:
            return yaml.safe_load(f) or {}

    # Try to load from project root directory
    repo_root = package_dir.parent
    alt_path2 = repo_root / config_path
    if alt_path2.exists():
        with open(alt_path2, 'r') as f:
            return yaml.safe_load(f) or {}

    raise FileNotFoundError(f"Config file not found: {config_path}")


class Settings(BaseModel):
    """Runtime settings: config.yaml values overridden by environment variables."""
    github_token: Optional[str] = Field(None, description="GitHub token with contents write access")
    github_owner: Optional[str] = Field(None, description="Owner of the site repository")
    github_repo: Optional[str] = Field(None, description="Name of the site repository")
    github_branch: str = Field("main", description="Branch that is read and committed to")
    html_path: str = Field("index.html", description="Path of the page in the repository")
    content_path: str = Field("contents/content.json", description="Path of the content document")
    autosave_delay: float = Field(30.0, description="Seconds after the first unsaved edit before autosave")
    preview_debounce: float = Field(0.3, description="Seconds of input quiet before a preview render")
    cache_dir: str = Field(".content_sync_cache", description="Directory of the local draft cache")
    api_base_url: Optional[str] = Field(None, description="Base URL of the HTTP endpoints, if remote")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Settings":
        github = config.get("github") or {}
        editor = config.get("editor") or {}
        cache = config.get("cache") or {}
        api = config.get("api") or {}

        values = {
            "github_branch": github.get("branch"),
            "html_path": github.get("html_path"),
            "content_path": github.get("content_path"),
            "autosave_delay": editor.get("autosave_delay"),
            "preview_debounce": editor.get("preview_debounce"),
            "cache_dir": cache.get("dir"),
            "api_base_url": api.get("base_url"),
            "github_token": os.getenv("GITHUB_TOKEN"),
            "github_owner": os.getenv("GITHUB_OWNER"),
            "github_repo": os.getenv("GITHUB_REPO"),
        }
        if os.getenv("GITHUB_BRANCH"):
            values["github_branch"] = os.getenv("GITHUB_BRANCH")
        if os.getenv("CONTENT_SYNC_API_URL"):
            values["api_base_url"] = os.getenv("CONTENT_SYNC_API_URL")

        return cls(**{k: v for k, v in values.items() if v is not None})


def get_settings(config_path='config.yaml') -> Settings:
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        config = {}
    return Settings.from_config(config)


def get_store_from_config(settings: Optional[Settings] = None):
    """GitHub store built from settings; raises RemoteMisconfigurationError when incomplete."""
    from content_sync.remote.store import GitHubContentStore

    settings = settings or get_settings()
    return GitHubContentStore(
        token=settings.github_token,
        owner=settings.github_owner,
        repo=settings.github_repo,
    )


def get_backend_from_config(settings: Optional[Settings] = None):
    """HTTP backend when an API URL is configured, otherwise in-process handlers."""
    from content_sync.api.backend import HttpContentBackend, LocalContentBackend
    from content_sync.api.handlers import ContentService

    settings = settings or get_settings()
    if settings.api_base_url:
        return HttpContentBackend(settings.api_base_url)
    service = ContentService(
        get_store_from_config(settings),
        branch=settings.github_branch,
        html_path=settings.html_path,
        content_path=settings.content_path,
    )
    return LocalContentBackend(service)
