"""Configuration parsing and validation for the athlete benchmark engine."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .errors import AuthenticationError, ConfigurationError

DEFAULT_DATASET = "VALDrefDataCOPY"
DEFAULT_LOCATION = "US"
DEFAULT_RANGES_TABLE = "percentile_ranges"


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used to reach the reference warehouse."""

    project_id: str
    dataset: str
    location: str
    ranges_table: str
    access_token: str


def load_config() -> Config:
    """Build and validate application configuration from the environment.

    Reads ``BIGQUERY_PROJECT_ID``, ``BIGQUERY_DATASET``, ``BIGQUERY_LOCATION``,
    ``BIGQUERY_RANGES_TABLE`` and ``BIGQUERY_ACCESS_TOKEN``.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If the project id is missing or a table/dataset
            name is not a plain identifier.
        AuthenticationError: If ``BIGQUERY_ACCESS_TOKEN`` is not configured.
    """
    project_id = os.getenv("BIGQUERY_PROJECT_ID", "").strip()
    if not project_id:
        raise ConfigurationError(
            "Missing required warehouse project. Set the 'BIGQUERY_PROJECT_ID' environment variable."
        )

    dataset = os.getenv("BIGQUERY_DATASET", "").strip() or DEFAULT_DATASET
    location = os.getenv("BIGQUERY_LOCATION", "").strip() or DEFAULT_LOCATION
    ranges_table = os.getenv("BIGQUERY_RANGES_TABLE", "").strip() or DEFAULT_RANGES_TABLE

    for name, value in (("BIGQUERY_DATASET", dataset), ("BIGQUERY_RANGES_TABLE", ranges_table)):
        if not value.replace("_", "").isalnum():
            raise ConfigurationError(
                f"Invalid value for '{name}': expected letters, digits and underscores, got '{value}'."
            )

    access_token = os.getenv("BIGQUERY_ACCESS_TOKEN", "").strip()
    if not access_token:
        raise AuthenticationError(
            "Missing required warehouse access token. "
            "Set the 'BIGQUERY_ACCESS_TOKEN' environment variable before running the engine."
        )

    return Config(
        project_id=project_id,
        dataset=dataset,
        location=location,
        ranges_table=ranges_table,
        access_token=access_token,
    )
