"""Configuration loading from environment variables."""

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, field_validator

from src.ports.settings import SettingsPort

__all__ = ["Settings", "load_settings"]

load_dotenv()

logger = logging.getLogger(__name__)
_http_url_adapter = TypeAdapter(HttpUrl)


class Settings(BaseModel):
    """Runtime configuration for the dispatcher and connectivity monitor.

    Attributes:
        api_base_url: Base URL every dispatch path is resolved against.
        request_timeout_sec: Total timeout for one HTTP exchange.
        probe_host: Host used to test reachability.
        probe_port: TCP port used to test reachability.
        probe_timeout_sec: Timeout for one reachability probe.
        poll_interval_sec: Seconds between background reachability probes.
        subscriber_buffer_size: Pending connectivity events kept per subscriber.
        health_check_path: Optional path fetched whenever the network comes back.
    """

    api_base_url: str = Field(..., description="Base URL for every request.")
    request_timeout_sec: float = Field(default=30.0, gt=0, description="Request timeout.")
    probe_host: str = Field(default="8.8.8.8", min_length=1, description="Probe host.")
    probe_port: int = Field(default=53, ge=1, le=65535, description="Probe TCP port.")
    probe_timeout_sec: float = Field(default=3.0, gt=0, description="Probe timeout.")
    poll_interval_sec: float = Field(default=5.0, gt=0, description="Probe period.")
    subscriber_buffer_size: int = Field(
        default=16, gt=0, description="Pending events kept per subscriber."
    )
    health_check_path: str | None = Field(
        default=None,
        description=(
            "Optional path fetched each time connectivity comes back. "
            "If not set, no request is made."
        ),
    )

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Validate that the base URL is a valid HTTP(S) URL.

        Args:
            v: Base URL to validate.

        Returns:
            The validated URL.

        Raises:
            ValueError: If URL is invalid or not http(s).
        """
        try:
            url = _http_url_adapter.validate_python(v)
            if url.scheme not in ("http", "https"):
                raise ValueError("Only http:// and https:// base URLs allowed")
        except Exception as e:
            raise ValueError(f"Invalid API base URL: {e}") from e
        return v

    def to_port(self) -> SettingsPort:
        """Wrap settings into the port consumed by the core.

        Returns:
            Plain settings DTO.
        """
        return SettingsPort(
            api_base_url=self.api_base_url,
            request_timeout_sec=self.request_timeout_sec,
            probe_host=self.probe_host,
            probe_port=self.probe_port,
            probe_timeout_sec=self.probe_timeout_sec,
            poll_interval_sec=self.poll_interval_sec,
            subscriber_buffer_size=self.subscriber_buffer_size,
            health_check_path=self.health_check_path,
        )


_NUMERIC_ENV_VARS = {
    "REQUEST_TIMEOUT_SECONDS": ("request_timeout_sec", float),
    "CONNECTIVITY_PROBE_PORT": ("probe_port", int),
    "CONNECTIVITY_PROBE_TIMEOUT_SECONDS": ("probe_timeout_sec", float),
    "CONNECTIVITY_POLL_SECONDS": ("poll_interval_sec", float),
    "SUBSCRIBER_BUFFER_SIZE": ("subscriber_buffer_size", int),
}


def load_settings() -> Settings:
    """Load and validate settings from the environment.

    Required environment variables:
    - API_BASE_URL: Valid HTTP(S) base URL.

    Optional:
    - REQUEST_TIMEOUT_SECONDS, CONNECTIVITY_PROBE_HOST, CONNECTIVITY_PROBE_PORT,
      CONNECTIVITY_PROBE_TIMEOUT_SECONDS, CONNECTIVITY_POLL_SECONDS,
      SUBSCRIBER_BUFFER_SIZE, HEALTH_CHECK_PATH.

    Returns:
        Validated Settings object.

    Raises:
        RuntimeError: If required env vars missing or not numeric.
        ValueError: If configuration is invalid.
    """
    try:
        base_url = os.environ["API_BASE_URL"]
    except KeyError as e:
        raise RuntimeError(f"Missing required environment variable: {e.args[0]}") from e

    overrides: dict[str, object] = {}
    for env_name, (field_name, cast) in _NUMERIC_ENV_VARS.items():
        raw = os.getenv(env_name)
        if raw is None:
            continue
        try:
            overrides[field_name] = cast(raw)
        except ValueError as e:
            raise RuntimeError(f"{env_name} must be a number (got: {raw})") from e

    probe_host = os.getenv("CONNECTIVITY_PROBE_HOST")
    if probe_host is not None:
        overrides["probe_host"] = probe_host

    settings = Settings(
        api_base_url=base_url,
        health_check_path=os.getenv("HEALTH_CHECK_PATH") or None,
        **overrides,
    )

    logger.info(
        f"Dispatcher configured: base_url={settings.api_base_url}, "
        f"timeout={settings.request_timeout_sec}s, "
        f"probe={settings.probe_host}:{settings.probe_port} every {settings.poll_interval_sec}s, "
        f"health_check={settings.health_check_path or '<disabled>'}"
    )

    return settings
