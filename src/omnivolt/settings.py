"""
Defines settings for omnivolt
"""

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Self

import yaml

from omnivolt import constants
from omnivolt.exceptions import ConfigError


@dataclass
class OmniVoltSettings:
    working_dir: str = field(default_factory=os.getcwd)
    """
    the plugin's working directory, which holds the version record, the installed server and the log file
    """

    install_dir_name: str = constants.INSTALL_DIR_NAME
    version_file_name: str = constants.VERSION_FILE_NAME
    binary_base_name: str = constants.BINARY_BASE_NAME

    release_api_url: str = constants.RELEASE_API_URL
    release_download_url: str = constants.RELEASE_DOWNLOAD_URL
    user_agent: str = constants.USER_AGENT
    request_timeout: float | None = 120.0
    """
    timeout in seconds for each HTTP request; None waits indefinitely
    """
    download_attempts: int = 1

    strict_archive_paths: bool = False
    """
    whether archive entries pointing outside the install directory abort extraction instead of being skipped
    """
    normalize_publish_diagnostics: bool = False
    """
    whether to inject an empty textDocument.publishDiagnostics client capability when the editor did not send one
    """

    log_to_file: bool = True
    log_file_name: str = constants.LOG_FILE_NAME
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.download_attempts < 1:
            raise ConfigError(f"download_attempts must be at least 1, got {self.download_attempts}")
        os.makedirs(self.working_dir, exist_ok=True)

    @property
    def install_dir(self) -> str:
        return os.path.join(self.working_dir, self.install_dir_name)

    @property
    def version_file(self) -> str:
        return os.path.join(self.working_dir, self.version_file_name)

    @property
    def log_file(self) -> str:
        return os.path.join(self.working_dir, self.log_file_name)

    @classmethod
    def from_yaml(cls, yaml_path: str | Path, **overrides) -> Self:
        """
        Load settings from a YAML file; keyword arguments take precedence over the file's values.
        """
        try:
            with open(yaml_path, encoding=constants.FILE_ENCODING) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read settings from {yaml_path}", e) from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {yaml_path} must contain a mapping, got {type(data).__name__}")

        known_fields = {f.name for f in dataclasses.fields(cls)}
        unknown_keys = sorted(set(data) - known_fields)
        if unknown_keys:
            raise ConfigError(f"Unknown settings in {yaml_path}: {', '.join(unknown_keys)}")

        data.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**data)
        except TypeError as e:
            raise ConfigError(f"Invalid settings in {yaml_path}", e) from e
