"""Configuration Management with Pydantic.

This module implements configuration models using Pydantic for parsing and
validation of YAML configuration files with environment variable overrides.
"""

import os
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator

from workspace_cycles.render.emitter import SUPPORTED_FORMATS
from workspace_cycles.workspace.loader import DEFAULT_MANIFEST_NAME

logger = structlog.get_logger(__name__)

ENV_PREFIX = "WORKSPACE_CYCLES_"
DEFAULT_CONFIG_NAMES = ("workspace-cycles.yaml", "workspace-cycles.yml")


class ScanConfig(BaseModel):
    """Workspace scanning settings.

    Attributes:
        roots: Directories whose immediate subdirectories hold packages
        manifest_name: Manifest file name inside each package directory
        include_build_dependencies: Also read build dependencies
    """

    roots: list[Path] = Field(
        default_factory=lambda: [Path("app"), Path("crate")],
        description="Workspace root directories",
        min_length=1,
    )
    manifest_name: str = Field(
        default=DEFAULT_MANIFEST_NAME,
        description="Manifest file name",
        min_length=1,
    )
    include_build_dependencies: bool = Field(
        default=False,
        description="Read [build-dependencies] as build edges",
    )

    @field_validator("manifest_name")
    @classmethod
    def validate_manifest_name(cls, v: str) -> str:
        """Validate that the manifest name is a bare file name.

        Raises:
            ValueError: If the name contains a path separator
        """
        if "/" in v or "\\" in v:
            msg = "manifest_name must be a file name, not a path"
            raise ValueError(msg)
        return v

    model_config = {"str_strip_whitespace": True}


class DetectionConfig(BaseModel):
    """Cycle detection settings.

    Attributes:
        trim_to_loop: Start each cycle at the re-entered package instead of
            recording the whole walk path
    """

    trim_to_loop: bool = Field(
        default=True,
        description="Trim recorded cycles to the loop itself",
    )


class OutputConfig(BaseModel):
    """Rendering settings.

    Attributes:
        format: Output format ('dot' or 'mermaid')
        min_cycle_size: Smallest cycle drawn in the output
        graph_name: Name of the top-level DOT digraph
    """

    format: str = Field(
        default="dot",
        description="Output format",
    )
    min_cycle_size: int = Field(
        default=2,
        ge=1,
        description="Minimum number of packages in a rendered cycle",
    )
    graph_name: str = Field(
        default="World",
        min_length=1,
        description="Top-level graph name",
    )

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Normalize and validate the output format.

        Raises:
            ValueError: If the format is not supported
        """
        normalized = v.lower().strip()
        if normalized not in SUPPORTED_FORMATS:
            msg = f"format must be one of: {', '.join(SUPPORTED_FORMATS)}"
            raise ValueError(msg)
        return normalized


class CycleCheckConfig(BaseModel):
    """Main configuration combining all settings.

    Attributes:
        scan: Workspace scanning configuration
        detection: Cycle detection configuration
        output: Rendering configuration
        logging_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Emit JSON log lines instead of console output
    """

    scan: ScanConfig = Field(default_factory=ScanConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging_level: str = Field(
        default="WARNING",
        description="Logging level",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    json_logs: bool = Field(
        default=False,
        description="Render logs as JSON",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CycleCheckConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            Parsed and validated CycleCheckConfig instance

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If configuration is invalid
        """
        config_path = Path(path)

        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_configuration", path=str(config_path))

        try:
            with config_path.open() as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.exception("yaml_parse_error", error=str(e), path=str(config_path))
            msg = f"Invalid YAML in configuration file: {e}"
            raise ValueError(msg) from e

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            msg = "Configuration file must contain a mapping"
            raise ValueError(msg)

        config = cls(**cls._apply_env_overrides(config_data))
        logger.info(
            "configuration_loaded",
            roots=[str(root) for root in config.scan.roots],
            output_format=config.output.format,
        )
        return config

    @classmethod
    def from_env(cls) -> "CycleCheckConfig":
        """Build configuration from defaults and environment overrides only."""
        return cls(**cls._apply_env_overrides({}))

    @classmethod
    def _apply_env_overrides(cls, config_data: dict) -> dict:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern: WORKSPACE_CYCLES_<KEY>
        Example: WORKSPACE_CYCLES_FORMAT, WORKSPACE_CYCLES_MIN_CYCLE_SIZE

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            Configuration dictionary with environment overrides applied
        """
        env_overrides = {
            ("scan", "roots"): f"{ENV_PREFIX}ROOTS",
            ("scan", "manifest_name"): f"{ENV_PREFIX}MANIFEST_NAME",
            ("scan", "include_build_dependencies"): f"{ENV_PREFIX}INCLUDE_BUILD",
            ("detection", "trim_to_loop"): f"{ENV_PREFIX}TRIM_TO_LOOP",
            ("output", "format"): f"{ENV_PREFIX}FORMAT",
            ("output", "min_cycle_size"): f"{ENV_PREFIX}MIN_CYCLE_SIZE",
            ("output", "graph_name"): f"{ENV_PREFIX}GRAPH_NAME",
            ("logging_level",): f"{ENV_PREFIX}LOGGING_LEVEL",
        }

        for path, env_var in env_overrides.items():
            value = os.environ.get(env_var)
            if value is None:
                continue

            current = config_data
            for key in path[:-1]:
                if not isinstance(current.get(key), dict):
                    current[key] = {}
                current = current[key]

            final_key = path[-1]
            if env_var.endswith("_ROOTS"):
                value = [root for root in value.split(os.pathsep) if root]
            elif env_var.endswith("_SIZE"):
                value = int(value)
            elif env_var.endswith(("_BUILD", "_LOOP")):
                value = value.lower() in ("true", "1", "yes")
            elif env_var.endswith("_LEVEL"):
                value = value.upper()

            current[final_key] = value
            logger.debug(
                "env_override_applied",
                env_var=env_var,
                config_path=".".join(path),
            )

        return config_data

    def validate_config(self) -> list[str]:
        """Validate configuration and return list of warnings.

        Returns:
            List of validation warning messages (empty if no warnings)
        """
        warnings = []

        missing = [str(root) for root in self.scan.roots if not root.is_dir()]
        if missing:
            warnings.append(f"Workspace roots not found: {', '.join(missing)}")

        if len(set(self.scan.roots)) != len(self.scan.roots):
            warnings.append("Workspace roots contain duplicates - packages will be merged")

        if self.output.min_cycle_size == 1:
            warnings.append("min_cycle_size is 1 - self-dependencies will be drawn as cycles")

        if not self.detection.trim_to_loop:
            warnings.append(
                "trim_to_loop is disabled - cycles may include packages leading into the loop",
            )

        return warnings


def load_config(config_path: str | Path | None = None) -> CycleCheckConfig:
    """Load configuration from file, or from defaults when no file is present.

    Args:
        config_path: Path to configuration file. If None, looks for
            workspace-cycles.yaml or workspace-cycles.yml in the current
            directory and falls back to defaults.

    Returns:
        Loaded CycleCheckConfig instance

    Raises:
        FileNotFoundError: If an explicit config file is not found
        ValueError: If the config file is invalid
    """
    if config_path is None:
        for default_name in DEFAULT_CONFIG_NAMES:
            default_path = Path(default_name)
            if default_path.exists():
                config_path = default_path
                break
        else:
            logger.debug("no_configuration_file_using_defaults")
            return CycleCheckConfig.from_env()

    return CycleCheckConfig.from_yaml(config_path)


__all__ = [
    "CycleCheckConfig",
    "DetectionConfig",
    "OutputConfig",
    "ScanConfig",
    "load_config",
]
