"""
Pydantic Settings Configuration
=================================

Type-safe configuration management using Pydantic.
Validates all configuration values at startup and fails fast with clear error messages.
"""

from pathlib import Path
from importlib import metadata
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict
from pydantic_settings import BaseSettings
import yaml


def _project_version() -> str:
    """Resolve the project version from package metadata."""
    try:
        return metadata.version("promptrouter")
    except metadata.PackageNotFoundError:
        return "0.0.0-dev"


class InferenceConfig(BaseModel):
    """Model selection and inference worker configuration"""
    classification_model: str = Field(
        "facebook/bart-large-mnli", description="Zero-shot classification model (transformers hub id or path)"
    )
    hypothesis_template: str = Field("{}", description="NLI hypothesis template; {} is replaced by the label")
    embedding_model: str = Field(
        "sentence-transformers/all-MiniLM-L12-v2", description="Sentence embedding model (hub id or path)"
    )
    device: Optional[str] = Field(None, description="Torch device (cpu, cuda, mps); library default if unset")
    max_queue_size: int = Field(256, ge=1, description="Pending requests per model before rejecting")
    load_timeout_seconds: float = Field(600.0, description="Max time to wait for a model to load")

    @field_validator('hypothesis_template')
    @classmethod
    def validate_hypothesis_template(cls, v: str) -> str:
        if "{}" not in v:
            raise ValueError("hypothesis_template must contain '{}' where the label is inserted")
        return v

    @field_validator('device')
    @classmethod
    def validate_device(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if v.split(":")[0] not in {"cpu", "cuda", "mps"}:
            raise ValueError("device must be cpu, cuda[:N] or mps")
        return v

    @field_validator('load_timeout_seconds')
    @classmethod
    def validate_load_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("load_timeout_seconds must be positive")
        return v

    model_config = ConfigDict(extra='allow')


class RoutingConfig(BaseModel):
    """Routing decision configuration"""
    decision_timeout_seconds: Optional[float] = Field(
        10.0, description="Deadline for one routing decision (None disables the deadline)"
    )

    @field_validator('decision_timeout_seconds')
    @classmethod
    def validate_decision_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("decision_timeout_seconds must be positive")
        return v

    model_config = ConfigDict(extra='allow')


class StoreConfig(BaseModel):
    """Organization store configuration"""
    organizations_file: Optional[Path] = Field(None, description="YAML/JSON file seeding the in-memory store")
    validate_references: bool = Field(True, description="Reject routers referencing unregistered models")

    model_config = ConfigDict(extra='allow')


class WebConfig(BaseModel):
    """Web interface configuration"""
    host: str = Field("0.0.0.0", description="Host to bind to")
    port: int = Field(8080, ge=1, le=65535, description="Port to bind to")

    model_config = ConfigDict(extra='allow')


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = Field("INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field("json", description="Log format (json, text)")

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(sorted(valid_levels))}")
        return v_upper

    @field_validator('format')
    @classmethod
    def validate_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in {'json', 'text'}:
            raise ValueError("Log format must be 'json' or 'text'")
        return v_lower

    model_config = ConfigDict(extra='allow')


class Settings(BaseSettings):
    """
    Main application settings with type validation.

    Configuration is loaded from:
    1. YAML config file (if provided)
    2. Environment variables with PROMPTROUTER_ prefix (override)
    3. Default values (fallback)

    Environment variable mapping uses double-underscore nesting:
      PROMPTROUTER_INFERENCE__DEVICE
      PROMPTROUTER_ROUTING__DECISION_TIMEOUT_SECONDS
      PROMPTROUTER_STORE__ORGANIZATIONS_FILE
    """

    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Project metadata
    project_name: str = Field("promptrouter", description="Project name")
    version: str = Field(default_factory=_project_version, description="Project version")

    model_config = ConfigDict(
        env_prefix='PROMPTROUTER_',
        env_nested_delimiter='__',
        extra='allow',
        validate_assignment=True,
    )

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "Settings":
        """
        Load settings from a YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Settings instance with validated configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If configuration is invalid
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load settings from environment variables only.

        Returns:
            Settings instance with environment-based configuration
        """
        return cls()

    def validate_required_config(self) -> List[str]:
        """
        Validate cross-field configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        organizations_file = self.store.organizations_file
        if organizations_file is not None and not Path(organizations_file).exists():
            errors.append(f"Organizations file not found: {organizations_file}")

        if self.inference.classification_model.strip() == "":
            errors.append("inference.classification_model must not be empty")
        if self.inference.embedding_model.strip() == "":
            errors.append("inference.embedding_model must not be empty")

        return errors


def load_settings(config_path: Optional[str | Path] = None) -> Settings:
    """
    Load and validate application settings.

    Args:
        config_path: Optional path to YAML config file

    Returns:
        Validated Settings instance

    Raises:
        ValueError: If configuration is invalid
    """
    # Load from YAML if provided, otherwise from environment
    if config_path:
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings.from_env()

    errors = settings.validate_required_config()
    if errors:
        raise ValueError(
            "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        )

    return settings


__all__ = [
    'Settings',
    'InferenceConfig',
    'RoutingConfig',
    'StoreConfig',
    'WebConfig',
    'LoggingConfig',
    'load_settings',
]
