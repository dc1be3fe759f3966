"""Endpoint URL validation and provider shorthands."""

from __future__ import annotations

from .exceptions import ConfigurationError

SHORTHANDS = {
    "aws": "https://s3.amazonaws.com",
    "do-sfo2": "https://sfo2.digitaloceanspaces.com",
    "do-nyc3": "https://nyc3.digitaloceanspaces.com",
    "do-sgp1": "https://sgp1.digitaloceanspaces.com",
    "do-fra1": "https://fra1.digitaloceanspaces.com",
    "do-ams3": "https://ams3.digitaloceanspaces.com",
    "wasabi-east": "https://s3.wasabisys.com",
    "wasabi-west": "https://s3.us-west-1.wasabisys.com",
    "jortage-pool": "https://pool-api.jortage.com",
}


def resolve_endpoint(value: str) -> str:
    """Turn a shorthand or URL into a normalized endpoint URL.

    Raises:
        ConfigurationError: If the result is not an http(s) URL.
    """
    endpoint = value.strip()
    endpoint = SHORTHANDS.get(endpoint.lower(), endpoint)
    if not endpoint.startswith(("http://", "https://")):
        raise ConfigurationError(
            f"{value!r} doesn't look like an S3 endpoint URL. It has to start with http:// or https://"
        )
    return endpoint.rstrip("/")
