"""Configuration management with YAML and JSON support."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from mbutiles.core.models import ImageFormat, Scheme


@dataclass
class ConversionConfig:
    """Defaults applied to import, export and metadata commands."""

    scheme: Scheme = Scheme.XYZ
    image_format: ImageFormat = ImageFormat.PNG
    grid_callback: Optional[str] = "grid"
    log_level: Optional[str] = None
    json_logs: bool = False
    log_file: Optional[str] = None


class ConfigLoader:
    """Load conversion configuration files in YAML or JSON format."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir or Path.cwd()

    def load(self, path: Path | str) -> ConversionConfig:
        """Parse a configuration file and return a populated dataclass."""

        config_path = self._resolve_path(Path(path))
        payload = self._load_payload(config_path)
        return self._build_config(payload, config_path.parent)

    def _resolve_path(self, path: Path) -> Path:
        if path.is_absolute():
            return path
        return (self._base_dir / path).resolve()

    def _load_payload(self, path: Path) -> Dict[str, Any]:
        suffix = path.suffix.lower()
        if suffix in {".yaml", ".yml"}:
            with path.open("r", encoding="utf-8") as handle:
                try:
                    payload = yaml.safe_load(handle) or {}
                except yaml.YAMLError as exc:
                    raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
        elif suffix == ".json":
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle) or {}
        else:
            raise ValueError(f"Unsupported configuration format: {suffix}")
        if not isinstance(payload, dict):
            raise ValueError("configuration root must be a mapping")
        return payload

    def _build_config(self, payload: Dict[str, Any], base_dir: Path) -> ConversionConfig:
        known = {item.name for item in fields(ConversionConfig)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

        data = dict(payload)
        if "scheme" in data:
            data["scheme"] = Scheme.parse(data["scheme"])
        if "image_format" in data:
            data["image_format"] = ImageFormat.parse(data["image_format"])
        callback = data.get("grid_callback")
        if isinstance(callback, bool):
            data["grid_callback"] = "true" if callback else "false"
        elif callback is not None:
            data["grid_callback"] = str(callback)
        if "json_logs" in data:
            data["json_logs"] = bool(data["json_logs"])
        log_file = data.get("log_file")
        if log_file:
            log_path = Path(log_file)
            if not log_path.is_absolute():
                log_path = base_dir / log_path
            data["log_file"] = str(log_path)
        return ConversionConfig(**data)


def load_config(path: Path | str, *, base_dir: Optional[Path] = None) -> ConversionConfig:
    """Convenience wrapper around :class:`ConfigLoader`."""

    loader = ConfigLoader(base_dir=base_dir)
    return loader.load(path)
