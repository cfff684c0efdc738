"""
Configuration management for the clipmark annotator

Central configuration system supporting:
- Dataclass-based configs
- YAML file loading
- Environment variable substitution
- Runtime modification
"""

import os
import yaml
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Optional, Dict, Any

from .constants import (
    ACTION_LABELS,
    DEFAULT_CONF_THRESHOLD,
    DEFAULT_IOU_THRESHOLD,
    MIN_DRAWN_BOX_SIZE,
    MODEL_INPUT_NAME,
    MODEL_INPUT_SIZE,
    MODEL_OUTPUT_NAME,
    NUM_CANDIDATES,
    SECONDS_PER_DAY,
    STORAGE_TTL_DAYS,
)
from .exceptions import ConfigError


@dataclass
class PoseConfig:
    """Configuration for the pose inference pipeline"""
    model_path: str = "models/yolo11n-pose.onnx"
    input_size: int = MODEL_INPUT_SIZE
    num_candidates: int = NUM_CANDIDATES
    conf_threshold: float = DEFAULT_CONF_THRESHOLD
    iou_threshold: float = DEFAULT_IOU_THRESHOLD
    input_name: str = MODEL_INPUT_NAME
    output_name: str = MODEL_OUTPUT_NAME
    providers: List[str] = field(default_factory=lambda: ["CPUExecutionProvider"])

    def __post_init__(self):
        """Validate configuration"""
        if self.conf_threshold < 0 or self.conf_threshold > 1:
            raise ValueError("conf_threshold must be between 0 and 1")
        if self.iou_threshold < 0 or self.iou_threshold > 1:
            raise ValueError("iou_threshold must be between 0 and 1")
        if self.input_size < 1:
            raise ValueError("input_size must be >= 1")
        if self.num_candidates < 1:
            raise ValueError("num_candidates must be >= 1")


@dataclass
class AnnotationConfig:
    """Configuration for click/drag annotation"""
    labels: List[str] = field(default_factory=lambda: list(ACTION_LABELS))
    min_box_size: float = MIN_DRAWN_BOX_SIZE

    def __post_init__(self):
        """Validate configuration"""
        if not self.labels:
            raise ValueError("labels must not be empty")
        if len(set(self.labels)) != len(self.labels):
            raise ValueError("labels must be unique")
        if self.min_box_size < 0:
            raise ValueError("min_box_size must be >= 0")


@dataclass
class StorageConfig:
    """Configuration for saved workspace state"""
    ttl_days: float = STORAGE_TTL_DAYS

    def __post_init__(self):
        """Validate configuration"""
        if self.ttl_days <= 0:
            raise ValueError("ttl_days must be > 0")

    @property
    def ttl_seconds(self) -> float:
        return self.ttl_days * SECONDS_PER_DAY


@dataclass
class PathConfig:
    """Configuration for data paths with environment variable support"""
    data_root: str = "${CLIPMARK_DATA_ROOT:~/.clipmark}"
    export_root: str = "${CLIPMARK_EXPORT_ROOT:./exports}"

    def resolve(self) -> None:
        """Resolve environment variables in paths"""
        for field_name in ['data_root', 'export_root']:
            value = getattr(self, field_name)
            if value.startswith('${') and ':' in value:
                var_name, default = value[2:-1].split(':', 1)
                value = os.getenv(var_name, default)
            setattr(self, field_name, os.path.expanduser(value))

    def __post_init__(self):
        """Resolve paths on initialization"""
        self.resolve()

    def get_data_path(self, *args) -> Path:
        """Get path relative to data root"""
        return Path(self.data_root) / Path(*args)

    def get_export_path(self, *args) -> Path:
        """Get path relative to export root"""
        return Path(self.export_root) / Path(*args)


@dataclass
class AnnotatorConfig:
    """Master configuration class combining all subconfigs"""
    pose: PoseConfig = field(default_factory=PoseConfig)
    annotation: AnnotationConfig = field(default_factory=AnnotationConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    paths: PathConfig = field(default_factory=PathConfig)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "AnnotatorConfig":
        """
        Load configuration from YAML file

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            AnnotatorConfig instance

        Raises:
            FileNotFoundError: If YAML file not found
            ConfigError: If YAML format or a value is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        try:
            with open(yaml_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML format in {yaml_path}: {e}") from e

        try:
            return cls(
                pose=PoseConfig(**data.get('pose', {})),
                annotation=AnnotationConfig(**data.get('annotation', {})),
                storage=StorageConfig(**data.get('storage', {})),
                paths=PathConfig(**data.get('paths', {}))
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration in {yaml_path}: {e}") from e

    @classmethod
    def from_env(cls, base_config: Optional["AnnotatorConfig"] = None) -> "AnnotatorConfig":
        """
        Create config from environment variables

        Supports environment variables like:
        - CLIPMARK_POSE_MODEL_PATH
        - CLIPMARK_POSE_CONF_THRESHOLD
        - CLIPMARK_POSE_IOU_THRESHOLD
        - CLIPMARK_STORAGE_TTL_DAYS

        Args:
            base_config: Base configuration to override (default: new config)

        Returns:
            AnnotatorConfig instance with environment overrides
        """
        if base_config is None:
            config = cls()
        else:
            config = base_config

        # Override pose config
        if 'CLIPMARK_POSE_MODEL_PATH' in os.environ:
            config.pose.model_path = os.environ['CLIPMARK_POSE_MODEL_PATH']
        if 'CLIPMARK_POSE_CONF_THRESHOLD' in os.environ:
            config.pose.conf_threshold = float(
                os.environ['CLIPMARK_POSE_CONF_THRESHOLD']
            )
        if 'CLIPMARK_POSE_IOU_THRESHOLD' in os.environ:
            config.pose.iou_threshold = float(
                os.environ['CLIPMARK_POSE_IOU_THRESHOLD']
            )

        # Override storage config
        if 'CLIPMARK_STORAGE_TTL_DAYS' in os.environ:
            config.storage.ttl_days = float(os.environ['CLIPMARK_STORAGE_TTL_DAYS'])

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        return asdict(self)

    def to_yaml(self, yaml_path: str) -> None:
        """
        Save configuration to YAML file

        Args:
            yaml_path: Path to save YAML configuration
        """
        yaml_path = Path(yaml_path)
        yaml_path.parent.mkdir(parents=True, exist_ok=True)

        with open(yaml_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def __str__(self) -> str:
        """String representation of config"""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)
