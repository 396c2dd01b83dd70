from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILENAME = "haystack.yml"


class ThemeConfig(BaseModel):
    """Requested syntax-highlighting themes for the light and dark page modes."""

    model_config = ConfigDict(frozen=True)

    light: str | None = Field(default=None, description="Highlighting theme used in light mode.")
    dark: str | None = Field(default=None, description="Highlighting theme used in dark mode.")

    @field_validator("light", "dark", mode="before")
    def _blank_to_none(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class Config(BaseModel):
    source_dir: Path = Field(default=Path("src"))
    output_dir: Path = Field(default=Path("output"))
    head_snippet: Path = Field(
        default=Path("theme/head.html"),
        description="Optional HTML fragment injected verbatim into every page <head>.",
    )
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=4000, ge=0, le=65535)
    theme: ThemeConfig = Field(default_factory=ThemeConfig)

    @field_validator("source_dir", "output_dir", "head_snippet", mode="before")
    def _ensure_path(cls, value: Any) -> Path:
        return Path(value)

    def with_overrides(
        self,
        *,
        theme_light: str | None = None,
        theme_dark: str | None = None,
        host: str | None = None,
        port: int | None = None,
    ) -> "Config":
        """Return a copy with command-line overrides applied on top of file values."""
        theme = ThemeConfig(
            light=theme_light if theme_light is not None else self.theme.light,
            dark=theme_dark if theme_dark is not None else self.theme.dark,
        )
        update: dict[str, Any] = {"theme": theme}
        if host is not None:
            update["host"] = host
        if port is not None:
            update["port"] = port
        return Config.model_validate({**self.model_dump(), **update})


def load_config(path: str | Path) -> Config:
    """Load configuration and resolve relative paths based on the config location.

    The ``path`` argument may point to a file (e.g., ``/site/haystack.yml``) or a
    directory containing that file. All relative paths inside the configuration
    are interpreted relative to the directory holding the config file.
    """
    candidate = Path(path)
    data: Any = {}
    base_dir: Path
    if candidate.is_dir():
        # Allow pointing at a project directory without a config file; use defaults.
        config_file = candidate / CONFIG_FILENAME
        if config_file.exists():
            with config_file.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        base_dir = candidate.resolve()
    else:
        if not candidate.exists():
            raise FileNotFoundError(candidate)
        with candidate.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        base_dir = candidate.parent.resolve()

    if not isinstance(data, dict):
        raise ValueError(f"Configuration root in {candidate} must be a mapping.")

    cfg = Config(**data)

    def _abs(value: Path) -> Path:
        return value if value.is_absolute() else (base_dir / value).resolve()

    cfg.source_dir = _abs(cfg.source_dir)
    cfg.output_dir = _abs(cfg.output_dir)
    cfg.head_snippet = _abs(cfg.head_snippet)
    return cfg
