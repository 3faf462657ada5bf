#!/usr/bin/env python3
"""
plotfed Server Configuration

Everything comes from one YAML file:
- server:     host, port, log_level
- library:    library_path (graphs, source and metric groups)
- connectors: list of {name, kind, origin, settings}; each connector serves one origin
- behavior:   refresh_interval, query_timeout, query_workers, default_sample, default_range
"""

import logging
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger("plotfed.server")


class ConnectorConfig(BaseModel):
    name: str
    kind: str
    origin: str
    settings: Dict[str, Any] = Field(default_factory=dict)


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    # Graph library YAML; missing file means an empty library
    library_path: Optional[str] = None
    connectors: List[ConnectorConfig] = Field(default_factory=list)
    # Behavior controls
    refresh_interval: int = 300      # seconds between catalog refreshes
    query_timeout: float = 30.0      # seconds to wait for connectors per request
    default_sample: int = 400
    default_range: str = "-1h"
    catalog_queue_size: int = 1000
    query_workers: int = 8           # worker threads for connector calls

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid log_level: {v}")
        return level

    @field_validator("default_sample", "refresh_interval", "catalog_queue_size", "query_workers")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @model_validator(mode="after")
    def validate_connectors(self):
        names = [connector.name for connector in self.connectors]
        if len(names) != len(set(names)):
            raise ValueError("connector names must be unique")

        origins = [connector.origin for connector in self.connectors]
        if len(origins) != len(set(origins)):
            raise ValueError("each origin must be served by a single connector")
        return self


def load_config_from(path: str) -> ServerConfig:
    """Load server configuration from YAML file."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    return ServerConfig(**data)
