"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    app_name:          str = "mdsite"
    content_dir:       str = Field(default="posts", description="Flat directory holding .md/.mdx documents")
    output_dir:        str = Field(default="dist",  description="Directory for rendered output and index.json")
    parser_config:     str = Field(default="commonmark", description="MarkdownIt parser preset name")
    max_heading_level: int = Field(default=6, ge=1, le=6, description="Deeper headings are clamped to this level")
    site_url:          Optional[str] = Field(default=None, description="Links to this origin are treated as internal")
    external_link_target: str = Field(default="_blank", description="target attribute for external links")
    external_link_rel:    str = Field(default="noopener noreferrer", description="rel attribute for external links")
    max_workers:       int = Field(default=1, ge=1, description="Documents processed concurrently in batch runs")
    log_level:         str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    components:        list[str] = Field(default_factory=list, description="Component names rendered as identity overrides")

    @field_validator("components", mode="before")
    @classmethod
    def _split_names(cls, value: Any) -> Any:
        # MDSITE_COMPONENTS=Greeting,Tweet
        if isinstance(value, str):
            return [name.strip() for name in value.split(",") if name.strip()]
        return value


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDSITE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"MDSITE_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid settings: {e}") from e
