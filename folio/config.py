from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigError
from .utils import parse_bool, parse_int


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    return data


@dataclass(frozen=True)
class SocialLink:
    name: str
    url: str


def parse_social_links(value: object) -> tuple[SocialLink, ...]:
    if not value:
        return ()
    if not isinstance(value, list):
        raise ConfigError("social_links must be a list")
    links = []
    for item in value:
        if isinstance(item, dict):
            name, url = item.get("name"), item.get("url")
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            name, url = item
        else:
            raise ConfigError(f"Invalid social link entry: {item!r}")
        if not name or not url:
            raise ConfigError(f"Social link needs a name and a url: {item!r}")
        links.append(SocialLink(str(name), str(url)))
    return tuple(links)


@dataclass(frozen=True)
class SiteConfig:
    site_name: str = "folio"
    site_description: str = ""
    base_url: str = ""
    social_links: tuple[SocialLink, ...] = field(default_factory=tuple)
    posts_per_page: int = 10
    feed_limit: int = 20
    toc_depth: str = "2-4"
    highlight: bool = True
    build_workers: int = 0
    clean: bool = True
    enable_rss: bool = True
    enable_atom: bool = True
    enable_sitemap: bool = True
    static_dir: Optional[Path] = None
    templates_dir: Optional[Path] = None

    @classmethod
    def from_mapping(cls, data: dict, base_dir: Optional[Path] = None) -> "SiteConfig":
        defaults = cls()

        def cfg_str(key: str, default: str) -> str:
            value = data.get(key)
            return default if value is None else str(value)

        def cfg_bool(key: str, default: bool) -> bool:
            value = data.get(key)
            return default if value is None else parse_bool(value)

        def cfg_int(key: str, default: int) -> int:
            return parse_int(data.get(key), default)

        def cfg_path(key: str) -> Optional[Path]:
            value = data.get(key)
            if value is None:
                return None
            if not isinstance(value, str):
                raise ConfigError(f"{key} must be a path string, got {value!r}")
            value = value.strip()
            if not value:
                return None
            path = Path(value)
            if not path.is_absolute() and base_dir is not None:
                path = base_dir / path
            return path

        return cls(
            site_name=cfg_str("site_name", defaults.site_name),
            site_description=cfg_str("site_description", defaults.site_description),
            base_url=cfg_str("base_url", defaults.base_url).strip(),
            social_links=parse_social_links(data.get("social_links")),
            posts_per_page=max(1, cfg_int("posts_per_page", defaults.posts_per_page)),
            feed_limit=max(0, cfg_int("feed_limit", defaults.feed_limit)),
            toc_depth=cfg_str("toc_depth", defaults.toc_depth),
            highlight=cfg_bool("highlight", defaults.highlight),
            build_workers=cfg_int("build_workers", defaults.build_workers),
            clean=cfg_bool("clean", defaults.clean),
            enable_rss=cfg_bool("enable_rss", defaults.enable_rss),
            enable_atom=cfg_bool("enable_atom", defaults.enable_atom),
            enable_sitemap=cfg_bool("enable_sitemap", defaults.enable_sitemap),
            static_dir=cfg_path("static_dir"),
            templates_dir=cfg_path("templates_dir"),
        )

    def override(self, **changes: object) -> "SiteConfig":
        """Copy with every non-``None`` change applied."""
        return replace(self, **{key: value for key, value in changes.items() if value is not None})
