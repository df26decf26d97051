from __future__ import annotations

import os
from typing import Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, model_validator

from .errors import InvalidConfiguration

SEPARATOR = ";"
"""Separator of the composite workflow id, reserved for internal use."""

FORBIDDEN_CHARACTERS = ". "


class SwfConfig(BaseModel):
    """Configuration for the Amazon SWF transport."""

    region_name: Optional[str] = None
    profile_name: Optional[str] = None
    endpoint_url: Optional[str] = None


class TransportConfig(BaseModel):
    """Transport configuration settings."""

    backend: Literal["inmemory", "swf"] = "inmemory"
    swf: SwfConfig = SwfConfig()


class SwflowConfig(BaseModel):
    """Top-level configuration model shared by every component."""

    domain: str = "default"
    unit: str = ""
    activity_task_lists: Dict[str, str] = Field(default_factory=dict)
    decision_task_list: Optional[str] = None
    decision_task_lists: Dict[str, str] = Field(default_factory=dict)
    activity_group: Optional[str] = None
    execution_id_prefix: Optional[str] = None
    execution_version: Optional[int] = None
    identity: Optional[str] = None
    workflow_name: str = "master-workflow"
    activity_name: str = "master-activity"
    type_version: str = "v1"
    transport: TransportConfig = TransportConfig()

    @model_validator(mode="after")
    def _check_reserved_characters(self) -> "SwflowConfig":
        names = [
            *self.activity_task_lists.values(),
            *self.decision_task_lists.values(),
            self.decision_task_list,
            self.activity_group,
            self.execution_id_prefix,
        ]
        for name in names:
            if name:
                validate_name(name)
        return self

    @property
    def default_unit(self) -> str:
        return self.unit

    @property
    def workflow_id_prefix(self) -> str:
        """Prefix of the workflow ids created by this configuration."""
        if self.execution_id_prefix is not None:
            return self.execution_id_prefix
        return self.unit


def validate_name(name: str) -> str:
    """Reject task list and identity names that use reserved characters."""
    if SEPARATOR in name:
        raise InvalidConfiguration(
            name, f"Separator '{SEPARATOR}' is reserved for internal use."
        )
    if any(char in name for char in FORBIDDEN_CHARACTERS):
        raise InvalidConfiguration(name, "Dots and spaces not allowed.")
    return name


def load_config(path: Optional[str] = None) -> SwflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to SWFLOW_CONFIG env
            variable or 'swflow.yaml' in the current directory.
    """

    config_path = path or os.getenv("SWFLOW_CONFIG", "swflow.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = SwflowConfig(**data)
    else:
        config = SwflowConfig()

    env_domain = os.getenv("SWFLOW_DOMAIN")
    if env_domain:
        config.domain = env_domain
    env_backend = os.getenv("SWFLOW_TRANSPORT")
    if env_backend:
        config.transport = config.transport.model_copy(
            update={"backend": env_backend.lower()}
        )
    return config
