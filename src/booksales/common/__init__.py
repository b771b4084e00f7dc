"""Shared configuration helpers."""

from .config_validator import PipelineConfig, load_and_validate_config, load_config

__all__ = ["PipelineConfig", "load_and_validate_config", "load_config"]
