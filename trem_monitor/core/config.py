"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from trem_monitor.core.area import MonitoredArea
from trem_monitor.core.rate_limit import DEFAULT_HEARTBEAT_EVERY


DEFAULT_MONITORED_AREAS = (
    MonitoredArea(code=106, name="臺北市大安區"),
    MonitoredArea(code=402, name="臺中市南區"),
    MonitoredArea(code=710, name="臺南市永康區"),
    MonitoredArea(code=301, name="新竹市東區"),
)


@dataclass
class TimeoutConfig:
    """Per-request-type timeouts in seconds.

    Attributes:
        realtime: Timeout for realtime station readings
        station: Timeout for the station directory (larger payload)
    """
    realtime: float = 2.0
    station: float = 3.5


@dataclass
class ServerPools:
    """Upstream server pools, one host is picked at random per request.

    Attributes:
        api: Hosts serving station metadata
        lb: Load-balanced hosts serving realtime readings
        scheme: URL scheme used for all hosts
    """
    api: list[str] = field(default_factory=lambda: [
        "api-1.exptech.dev",
        "api-2.exptech.dev",
    ])
    lb: list[str] = field(default_factory=lambda: [
        "lb-1.exptech.dev",
        "lb-2.exptech.dev",
        "lb-3.exptech.dev",
        "lb-4.exptech.dev",
    ])
    scheme: str = "https"

    def get(self, name: str) -> list[str]:
        """Return a pool by name, falling back to the load-balanced pool."""
        if name == "api":
            return self.api
        return self.lb


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        poll_interval_seconds: Spacing between realtime polls
        station_cache_ttl_seconds: How long station metadata stays fresh
        heartbeat_every: Force a full refresh every N ticks (0 disables)
        display_threshold: Only log changes above this intensity
        timeouts: Per-request-type timeouts
        servers: Upstream server pools
        monitored_areas: Areas to track
        host: Interface the subscriber server binds to
        ws_port: Port the subscriber server listens on
    """
    poll_interval_seconds: float = 1.0
    station_cache_ttl_seconds: float = 300.0
    heartbeat_every: int = DEFAULT_HEARTBEAT_EVERY
    display_threshold: int = 0
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    servers: ServerPools = field(default_factory=ServerPools)
    monitored_areas: list[MonitoredArea] = field(
        default_factory=lambda: list(DEFAULT_MONITORED_AREAS)
    )
    host: str = "0.0.0.0"
    ws_port: int = 3000


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_areas(areas: list[MonitoredArea]) -> list[ValidationError]:
    """Validate the monitored area list.

    Pure function.

    Args:
        areas: Configured monitored areas

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not areas:
        errors.append(ValidationError(
            field="monitored_areas",
            message="No monitored areas configured",
        ))

    seen: set[int] = set()
    for i, area in enumerate(areas):
        if area.code in seen:
            errors.append(ValidationError(
                field=f"monitored_areas[{i}].code",
                message=f"Duplicate area code {area.code}",
            ))
        seen.add(area.code)

        if not area.name:
            errors.append(ValidationError(
                field=f"monitored_areas[{i}].name",
                message=f"Area {area.code} has no name",
                severity="warning",
            ))

    return errors


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if config.poll_interval_seconds <= 0:
        errors.append(ValidationError(
            field="poll_interval_seconds",
            message=f"Poll interval must be positive, got {config.poll_interval_seconds}",
        ))

    if config.station_cache_ttl_seconds < 0:
        errors.append(ValidationError(
            field="station_cache_ttl_seconds",
            message=f"Cache TTL must not be negative, got {config.station_cache_ttl_seconds}",
        ))

    for name in ("realtime", "station"):
        value = getattr(config.timeouts, name)
        if value <= 0:
            errors.append(ValidationError(
                field=f"timeouts.{name}",
                message=f"Timeout must be positive, got {value}",
            ))

    # A request that outlives the poll interval gets its next tick skipped
    if config.timeouts.realtime > config.poll_interval_seconds * 10:
        errors.append(ValidationError(
            field="timeouts.realtime",
            message=(
                f"Realtime timeout {config.timeouts.realtime}s is much longer "
                f"than the poll interval {config.poll_interval_seconds}s"
            ),
            severity="warning",
        ))

    for name in ("api", "lb"):
        if not config.servers.get(name):
            errors.append(ValidationError(
                field=f"servers.{name}",
                message=f"Server pool '{name}' is empty",
            ))

    if not 0 < config.ws_port < 65536:
        errors.append(ValidationError(
            field="ws_port",
            message=f"Port {config.ws_port} out of range [1, 65535]",
        ))

    errors.extend(validate_areas(config.monitored_areas))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
