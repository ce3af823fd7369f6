"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from locom.core.announcements import DEFAULT_HTML_HOSTS
from locom.core.moderation import DEFAULT_DENYLIST, ModerationPolicy


@dataclass(frozen=True)
class MunicipalityLocation:
    """Location tagged onto imported municipality posts.

    Attributes:
        latitude: Location latitude
        longitude: Location longitude
        name: Human-readable place name
    """
    latitude: float
    longitude: float
    name: str = "Municipality"


@dataclass
class SyncConfig:
    """Municipality sync configuration.

    Attributes:
        feed_url: Municipality feed URL (RSS, JSON or HTML page)
        sync_secret: Shared secret expected in the Authorization header
        supabase_url: Supabase project URL
        supabase_service_key: Service-role key (bypasses row-level security)
        owner_id: Account that imported posts are attributed to
        location: Location to tag imported posts with (optional)
        html_hosts: Hosts whose pages are scraped as HTML
        request_timeout: Feed request timeout in seconds
    """
    feed_url: str | None = None
    sync_secret: str | None = None
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    owner_id: str | None = None
    location: MunicipalityLocation | None = None
    html_hosts: tuple[str, ...] = DEFAULT_HTML_HOSTS
    request_timeout: int = 30


@dataclass
class ModerationConfig:
    """Content moderation configuration.

    Attributes:
        denylist: Denylisted substrings
        extra_terms: Terms appended to the denylist
        caps_ratio_threshold: Capital-letter ratio above which text is rejected
        repetition_threshold: Occurrences above which a token is spam
    """
    denylist: tuple[str, ...] = DEFAULT_DENYLIST
    extra_terms: tuple[str, ...] = ()
    caps_ratio_threshold: float = 0.5
    repetition_threshold: int = 5

    def to_policy(self) -> ModerationPolicy:
        """Build the filter policy described by this configuration."""
        return ModerationPolicy(
            denylist=tuple(self.denylist) + tuple(self.extra_terms),
            caps_ratio_threshold=self.caps_ratio_threshold,
            repetition_threshold=self.repetition_threshold,
        )


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        sync: Municipality sync settings
        moderation: Content moderation settings
    """
    sync: SyncConfig = field(default_factory=SyncConfig)
    moderation: ModerationConfig = field(default_factory=ModerationConfig)


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


def validate_coordinates(lat: float, lon: float, field_name: str) -> list[ValidationError]:
    """Validate latitude/longitude coordinates.

    Pure function.

    Args:
        lat: Latitude value
        lon: Longitude value
        field_name: Name of the field for error messages

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not -90 <= lat <= 90:
        errors.append(ValidationError(
            field=field_name,
            message=f"Latitude {lat} out of range [-90, 90]",
        ))

    if not -180 <= lon <= 180:
        errors.append(ValidationError(
            field=field_name,
            message=f"Longitude {lon} out of range [-180, 180]",
        ))

    return errors


def is_configured(value: str | None) -> bool:
    """Check that a setting is present and not a leftover ${...} placeholder.

    Pure function.
    """
    return bool(value) and not value.startswith("${")


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function. Missing sync settings are errors because the sync
    endpoint cannot run without them.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []
    sync = config.sync

    required = {
        "sync.feed_url": sync.feed_url,
        "sync.sync_secret": sync.sync_secret,
        "sync.supabase_url": sync.supabase_url,
        "sync.supabase_service_key": sync.supabase_service_key,
        "sync.owner_id": sync.owner_id,
    }
    for name, value in required.items():
        if not is_configured(value):
            errors.append(ValidationError(
                field=name,
                message="Not configured (missing or unresolved placeholder)",
            ))

    if sync.location is None:
        errors.append(ValidationError(
            field="sync.location",
            message="No location configured, imported posts will not be geotagged",
            severity="warning",
        ))
    else:
        errors.extend(validate_coordinates(
            sync.location.latitude,
            sync.location.longitude,
            "sync.location",
        ))

    if sync.request_timeout <= 0:
        errors.append(ValidationError(
            field="sync.request_timeout",
            message=f"Timeout must be positive, got {sync.request_timeout}",
        ))

    moderation = config.moderation
    if not 0 < moderation.caps_ratio_threshold <= 1:
        errors.append(ValidationError(
            field="moderation.caps_ratio_threshold",
            message=f"Ratio must be in (0, 1], got {moderation.caps_ratio_threshold}",
        ))

    if moderation.repetition_threshold < 1:
        errors.append(ValidationError(
            field="moderation.repetition_threshold",
            message=f"Threshold must be at least 1, got {moderation.repetition_threshold}",
        ))

    if not moderation.denylist and not moderation.extra_terms:
        errors.append(ValidationError(
            field="moderation.denylist",
            message="Denylist is empty, only caps and repetition checks apply",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
