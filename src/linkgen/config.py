from __future__ import annotations

import re
import tomllib
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from linkgen.errors import ConfigError
from linkgen.naming.case import CaseStyle

_IDENT_CHARS = re.compile(r"^[A-Za-z0-9_]*$")
_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

CONFIG_FILENAMES = ("linkgen.toml", "pyproject.toml", "Cargo.toml")

# Nested [naming] / [typescript] tables are flattened into top-level options.
_TYPESCRIPT_KEYS = {
    "generate_client": "generate_typescript_client",
    "output_path": "typescript_client_output",
    "bindings_import": "typescript_bindings_import",
}
_PATH_FIELDS = ("controllers_path", "output_file", "typescript_client_output")


class GeneratorConfig(BaseModel):
    """One immutable snapshot of options, shared by every pipeline stage of a run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    controllers_path: Path = Path("src/controllers")
    output_file: Path = Path("links.rs")
    generate_typescript_client: bool = False
    typescript_client_output: Path = Path("client.ts")

    include_method_in_names: bool = True
    path_prefix_to_remove: Optional[str] = None
    variant_case: CaseStyle = CaseStyle.PASCAL
    field_case: CaseStyle = CaseStyle.SNAKE
    word_separators: str = "-_.:"
    variant_prefix: str = ""
    variant_suffix: str = ""
    preserve_numbers: bool = False

    enum_name: str = "Link"
    rust_display_impl: bool = False
    typescript_bindings_import: str = "../bindings"
    workers: int = Field(default=1, ge=1)

    @field_validator("variant_case", "field_case", mode="before")
    @classmethod
    def _parse_case(cls, v: Any) -> CaseStyle:
        if isinstance(v, CaseStyle):
            return v
        return CaseStyle.parse(str(v))

    @field_validator("word_separators")
    @classmethod
    def _check_separators(cls, v: str) -> str:
        bad = sorted({c for c in v if c.isalnum()})
        if bad:
            raise ValueError(f"word separators must not contain letters or digits: {''.join(bad)!r}")
        return v

    @field_validator("variant_prefix", "variant_suffix")
    @classmethod
    def _check_affix(cls, v: str) -> str:
        if not _IDENT_CHARS.match(v):
            raise ValueError(f"{v!r} may only contain letters, digits and '_'")
        return v

    @field_validator("enum_name")
    @classmethod
    def _check_enum_name(cls, v: str) -> str:
        if not _IDENT.match(v):
            raise ValueError(f"{v!r} is not a valid identifier")
        return v

    @field_validator("path_prefix_to_remove")
    @classmethod
    def _blank_prefix_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip("/ "):
            return None
        return v


def make_config(**options: Any) -> GeneratorConfig:
    """Build a config from keyword options, turning validation failures into ConfigError."""
    try:
        return GeneratorConfig(**options)
    except ValidationError as e:
        raise ConfigError(_format_validation_error(e)) from e


def _format_validation_error(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", ())) or "config"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "invalid configuration: " + "; ".join(parts)


def _flatten(table: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in table.items():
        if key == "naming" and isinstance(value, dict):
            out.update(value)
        elif key == "typescript" and isinstance(value, dict):
            for k, v in value.items():
                out[_TYPESCRIPT_KEYS.get(k, k)] = v
        else:
            out[key] = value
    return out


def _extract_table(path: Path, data: dict[str, Any]) -> dict[str, Any]:
    if path.name == "pyproject.toml":
        return data.get("tool", {}).get("linkgen", {})
    if path.name == "Cargo.toml":
        return data.get("package", {}).get("metadata", {}).get("linkgen", {})
    return data


def find_config_file(start: Path) -> Path | None:
    """Return the first config file in start that actually carries linkgen settings."""
    for name in CONFIG_FILENAMES:
        candidate = start / name
        if not candidate.is_file():
            continue
        if name == "linkgen.toml":
            return candidate
        try:
            data = tomllib.loads(candidate.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError):
            continue
        if _extract_table(candidate, data):
            return candidate
    return None


def load_config(path: Path | None = None, **overrides: Any) -> GeneratorConfig:
    """
    Load a GeneratorConfig from a TOML file.

    Supported sources:
      - linkgen.toml (top-level keys)
      - pyproject.toml [tool.linkgen]
      - Cargo.toml [package.metadata.linkgen]

    Relative paths are resolved against the config file's directory.
    Keyword overrides (e.g. from CLI flags) win over file values; None overrides are ignored.
    """
    options: dict[str, Any] = {}
    base_dir = Path.cwd()

    if path is not None:
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"config file not found: {path}")
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"{path}: invalid TOML ({e})") from e
        except OSError as e:
            raise ConfigError(f"{path}: cannot read config ({e})") from e
        options = _flatten(_extract_table(path, data))
        base_dir = path.resolve().parent

    options.update({k: v for k, v in overrides.items() if v is not None})

    for key in _PATH_FIELDS:
        if key in options:
            p = Path(options[key])
            options[key] = p if p.is_absolute() else base_dir / p

    return make_config(**options)
