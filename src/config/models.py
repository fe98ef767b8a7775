# src/config/models.py — v1
"""Project configuration models.

GlobalConfig is loaded once per run from the project's config file.
ConfigPatch mirrors the per-file policies with every leaf optional and is
what override rules carry. EffectiveConfig is the merged result for one file.
All models reject unknown keys and accept camelCase or snake_case names.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from webappbuilder.core.errors import ConfigurationError
from webappbuilder.images.size_planner import parse_size_hints
from webappbuilder.matching.path_matcher import validate_pattern

ImageFormat = Literal["webp", "avif", "jxl", "png", "jpg"]
TextKind = Literal["markup", "stylesheet", "script", "data", "vector"]

_FORMAT_ALIASES = {"jpeg": "jpg"}
_TEXT_KIND_ALIASES = {
    "html": "markup",
    "css": "stylesheet",
    "js": "script",
    "json": "data",
    "svg": "vector",
}


def _normalize_formats(value: Any) -> Any:
    if isinstance(value, str):
        value = [v for v in value.split(",") if v.strip()]
    if isinstance(value, (list, tuple)):
        out: list[Any] = []
        for item in value:
            if isinstance(item, str):
                item = item.strip().lower().lstrip(".")
                item = _FORMAT_ALIASES.get(item, item)
            if item not in out:
                out.append(item)
        return out
    return value


def _coerce_boxes(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [
            {"width": v, "height": v} if isinstance(v, int) and not isinstance(v, bool) else v
            for v in value
        ]
    return value


def _normalize_text_kinds(value: Any) -> Any:
    if isinstance(value, dict):
        return {_TEXT_KIND_ALIASES.get(k, k): v for k, v in value.items()}
    return value


ImageFormatList = Annotated[list[ImageFormat], BeforeValidator(_normalize_formats)]
DirectOptions = Annotated[
    dict[TextKind, dict[str, Any]], BeforeValidator(_normalize_text_kinds)
]


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SizeBox(_ConfigModel):
    """Bounding box a resized variant must fit into."""

    width: int = Field(gt=0)
    height: int = Field(gt=0)


SizeBoxList = Annotated[list[SizeBox], BeforeValidator(_coerce_boxes)]


# === Full policies ===


class ResizePolicy(_ConfigModel):
    auto: bool = True
    sizes: str = ""
    custom_sizes: SizeBoxList = Field(default_factory=list)
    fallback_size: int | None = Field(default=None, gt=0)
    keep_original_size: bool = False
    dedup_ratio: float = Field(default=0.60, gt=0, lt=1)

    @field_validator("sizes")
    @classmethod
    def validate_sizes(cls, v: str | None) -> str | None:
        if v:
            parse_size_hints(v)
        return v


class ImagePolicy(_ConfigModel):
    minify: bool = True
    convert: bool = True
    keep_original_format: bool = True
    target_formats: ImageFormatList = Field(default_factory=lambda: ["webp"])
    min_size: int = Field(default=16, ge=1)
    max_size: int = Field(default=2560, ge=1)
    quality: float = Field(default=0.85, ge=0, le=1)
    resize: ResizePolicy = Field(default_factory=ResizePolicy)

    @model_validator(mode="after")
    def validate_size_bounds(self) -> ImagePolicy:
        if self.min_size > self.max_size:
            raise ValueError("min_size must be <= max_size")
        return self


class TextPolicy(_ConfigModel):
    minify: bool = True
    direct_options: DirectOptions = Field(default_factory=dict)


class IconsPolicy(_ConfigModel):
    add: bool = True
    source: str = ""


class ServiceWorkerPolicy(_ConfigModel):
    add: bool = False
    clean: bool = False


# === Partial updates ===


class ResizePatch(_ConfigModel):
    auto: bool | None = None
    sizes: str | None = None
    custom_sizes: SizeBoxList | None = None
    fallback_size: int | None = Field(default=None, gt=0)
    keep_original_size: bool | None = None
    dedup_ratio: float | None = Field(default=None, gt=0, lt=1)

    @field_validator("sizes")
    @classmethod
    def validate_sizes(cls, v: str | None) -> str | None:
        if v:
            parse_size_hints(v)
        return v


class ImagePatch(_ConfigModel):
    minify: bool | None = None
    convert: bool | None = None
    keep_original_format: bool | None = None
    target_formats: ImageFormatList | None = None
    min_size: int | None = Field(default=None, ge=1)
    max_size: int | None = Field(default=None, ge=1)
    quality: float | None = Field(default=None, ge=0, le=1)
    resize: ResizePatch | None = None


class TextPatch(_ConfigModel):
    minify: bool | None = None
    direct_options: DirectOptions | None = None


class ConfigPatch(_ConfigModel):
    """Typed partial update of the per-file policies."""

    images: ImagePatch | None = None
    files: TextPatch | None = None

    def as_update(self) -> dict[str, Any]:
        """Return only the leaves this patch sets, keyed by field name."""
        return self.model_dump(exclude_none=True)


class OverrideRule(_ConfigModel):
    """Per-path override: a glob plus the settings it patches.

    Accepts the legacy shape ``{"glob": ..., "images": ..., "files": ...}``.
    """

    pattern: str = Field(validation_alias=AliasChoices("pattern", "glob"))
    settings: ConfigPatch = Field(default_factory=ConfigPatch)
    remove: bool = False

    @model_validator(mode="before")
    @classmethod
    def lift_legacy_shape(cls, data: Any) -> Any:
        if isinstance(data, dict) and ("images" in data or "files" in data):
            if "settings" in data:
                raise ValueError("Use either 'settings' or top-level 'images'/'files'")
            data = dict(data)
            data["settings"] = {
                key: data.pop(key) for key in ("images", "files") if key in data
            }
        return data

    @field_validator("pattern")
    @classmethod
    def validate_glob(cls, v: str) -> str:
        validate_pattern(v)
        return v


# === Run-level ===


class GlobalConfig(_ConfigModel):
    """Process-wide project configuration, immutable after validation."""

    alias: str = Field(default="ewab", pattern=r"^[A-Za-z0-9_.-]+$")
    use_cache: bool = True
    root_path: Path
    input_path: str | None = None
    output_path: str | None = None
    cache_path: Path | None = None
    images: ImagePolicy = Field(default_factory=ImagePolicy)
    files: TextPolicy = Field(default_factory=TextPolicy)
    icons: IconsPolicy = Field(default_factory=IconsPolicy)
    serviceworker: ServiceWorkerPolicy = Field(default_factory=ServiceWorkerPolicy)
    file_exceptions: list[OverrideRule] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_paths(self) -> GlobalConfig:
        if self.input_path and self.output_path:
            if Path(self.input_path) == Path(self.output_path):
                raise ConfigurationError(
                    "input_path and output_path must be different folders"
                )
        return self

    @model_validator(mode="after")
    def validate_rules_against_policies(self) -> GlobalConfig:
        """Each rule applied alone over the global policies must stay valid."""
        from webappbuilder.config.resolver import deep_merge

        base = {"images": self.images.model_dump(), "files": self.files.model_dump()}
        for rule in self.file_exceptions:
            try:
                EffectiveConfig.model_validate(
                    {"alias": self.alias, **deep_merge(base, rule.settings.as_update())}
                )
            except ValidationError as e:
                raise ConfigurationError(
                    f"Rule {rule.pattern!r} makes the configuration invalid: {e}"
                ) from e
        return self

    @property
    def resolved_cache_path(self) -> Path:
        """Cache directory, defaulting to ``<root>/.<alias>-cache``."""
        if self.cache_path is None:
            return self.root_path / f".{self.alias}-cache"
        if self.cache_path.is_absolute():
            return self.cache_path
        return self.root_path / self.cache_path


class EffectiveConfig(_ConfigModel):
    """Fully merged settings for one logical path."""

    alias: str
    images: ImagePolicy
    files: TextPolicy
    remove: bool = False
