"""Settings port definition (DTO)."""

from dataclasses import dataclass

__all__ = ["SettingsPort"]


@dataclass
class SettingsPort:
    """Runtime settings for the dispatcher and connectivity monitor.

    Decouples core from concrete configuration sources, enabling
    easy testing and implementation swapping.

    Attributes:
        api_base_url: Base URL every dispatch path is resolved against.
        request_timeout_sec: Total timeout for one HTTP exchange.
        probe_host: Host used to test reachability.
        probe_port: TCP port used to test reachability.
        probe_timeout_sec: Timeout for one reachability probe.
        poll_interval_sec: Seconds between background reachability probes.
        subscriber_buffer_size: Pending events kept per subscriber.
        health_check_path: Optional path fetched whenever the network comes back.
    """

    api_base_url: str
    request_timeout_sec: float = 30.0
    probe_host: str = "8.8.8.8"
    probe_port: int = 53
    probe_timeout_sec: float = 3.0
    poll_interval_sec: float = 5.0
    subscriber_buffer_size: int = 16
    health_check_path: str | None = None
