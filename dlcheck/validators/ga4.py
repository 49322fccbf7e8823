"""GA4 protocol validation.

Checks a decoded hit against the documented GA4 collection limits and naming
rules. Violations are data: ``validate_hit`` never raises for a bad hit, it
returns a ``ValidationResult`` listing what is wrong.
"""

import logging
import re
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..models.capture import NetworkHit

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")
ITEM_PARAMETER_PATTERN = re.compile(r"^pr([0-9]{1,3})$")

GA4_LIMITS: Dict[str, Dict[str, Any]] = {
    "event_name": {
        "max_length": 40,
        "pattern": NAME_PATTERN,
        "reserved_prefixes": ("firebase_", "ga_", "google_", "gtag."),
        "reserved": frozenset([
            "ad_activeview", "ad_click", "ad_exposure", "ad_impression",
            "ad_query", "ad_reward", "adunit_exposure", "app_clear_data",
            "app_exception", "app_remove", "app_store_refund",
            "app_store_subscription_cancel", "app_store_subscription_convert",
            "app_store_subscription_renew", "app_update", "app_upgrade",
            "dynamic_link_app_open", "dynamic_link_app_update",
            "dynamic_link_first_open", "error", "firebase_campaign",
            "firebase_in_app_message_action", "firebase_in_app_message_dismiss",
            "firebase_in_app_message_impression", "first_open", "first_visit",
            "in_app_purchase", "notification_dismiss", "notification_foreground",
            "notification_open", "notification_receive", "os_update",
            "session_start", "session_start_with_rollout", "user_engagement",
        ]),
        "automatic": frozenset([
            "click", "file_download", "form_start", "form_submit",
            "page_view", "scroll", "session_start", "user_engagement",
            "video_complete", "video_progress", "video_start", "view_search_results",
        ]),
    },
    "parameters": {
        "max_per_event": 25,
        "name_max_length": 40,
        "name_pattern": NAME_PATTERN,
        "value_max_length": 100,
        "reserved_prefixes": ("firebase_", "ga_", "google_"),
        "reserved": frozenset([
            "firebase_conversion", "firebase_error", "firebase_error_value",
            "firebase_event_origin", "firebase_previous_class", "firebase_previous_id",
            "firebase_previous_screen", "firebase_realtime", "firebase_screen",
            "firebase_screen_class", "firebase_screen_id", "ga_debug",
        ]),
        # Protocol-level keys that are always valid
        "internal": frozenset([
            # Core
            "v", "tid", "gtm", "_p", "sr", "ul", "dh", "cid", "_s", "richsstsse",
            # Document
            "dl", "dt", "dr", "_z", "_eu", "edid", "_dbg", "ir", "tt",
            # Consent
            "gcs", "gcu", "gcut", "gcd", "_glv", "us_privacy", "gdpr", "gdpr_consent",
            # Campaign
            "cm", "cs", "cn", "cc", "ck", "ccf", "cmt", "_rnd",
            # Event
            "en", "_et", "_c", "_ee",
            # Session and user
            "uid", "_fid", "sid", "sct", "seg", "_fv", "_ss", "_fplc", "_nsi", "_uc", "_tu",
            # E-commerce
            "cu", "pi", "pn", "lo",
            # Client hints
            "uaa", "uab", "uafvl", "uamb", "uam", "uap", "uapv", "uaw",
            # Miscellaneous
            "gtm_up", "_ecid", "_uei", "_gaz", "_rdi", "_geo", "gdid",
            "_v", "_u", "_gid", "_r", "_slc", "npa", "dma", "are", "frm",
            "pscdl", "tag_exp", "tfd",
            # Item subfields
            "id", "br", "ca", "ca2", "ca3", "ca4", "ca5", "pr", "qt", "va",
            "cp", "ds", "ln", "li", "lp", "af",
        ]),
        "internal_prefixes": ("ep.", "epn.", "up.", "upn."),
    },
    "user_properties": {
        "max_count": 25,
        "name_max_length": 24,
        "value_max_length": 36,
    },
    "items": {
        "max_per_event": 200,
        "max_custom_parameters": 10,
        "standard_fields": frozenset([
            "item_id", "item_name", "item_category", "item_brand",
            "item_variant", "price", "quantity", "coupon", "discount",
        ]),
    },
    "payload": {
        "max_size": 130000,
        "warning_ratio": 0.9,
    },
}


class Severity(str, Enum):
    """Severity levels for validation violations."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Violation(BaseModel):
    """One broken rule found on a hit."""

    model_config = ConfigDict(use_enum_values=True)

    severity: Severity = Field(description="error, warning or info")
    type: str = Field(description="Stable violation code, e.g. EVENT_NAME_TOO_LONG")
    message: str = Field(description="Human-readable description")
    details: Dict[str, Any] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """Outcome of validating a single hit."""

    valid: bool = Field(description="False iff at least one violation is an error")
    violations: List[Violation] = Field(default_factory=list)

    @property
    def errors(self) -> List[Violation]:
        return [v for v in self.violations if v.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[Violation]:
        return [v for v in self.violations if v.severity == Severity.WARNING]

    @property
    def infos(self) -> List[Violation]:
        return [v for v in self.violations if v.severity == Severity.INFO]

    def summary(self) -> Dict[str, Any]:
        return {
            "total": len(self.violations),
            "errors": len(self.errors),
            "warnings": len(self.warnings),
            "info": len(self.infos),
            "valid": self.valid,
        }

    def format_report(self, event_name: Optional[str] = None) -> str:
        """Multi-line report grouped by severity."""
        title = f' for "{event_name}"' if event_name else ""
        summary = self.summary()
        lines = [
            f"GA4 validation{title}: {'VALID' if self.valid else 'INVALID'}",
            f"Total issues: {summary['total']} "
            f"({summary['errors']} errors, {summary['warnings']} warnings)",
        ]
        for label, group in (("Errors", self.errors), ("Warnings", self.warnings), ("Info", self.infos)):
            if group:
                lines.append(f"{label}:")
                lines.extend(f"  - {violation.message}" for violation in group)
        return "\n".join(lines)


def is_internal_parameter(name: str) -> bool:
    """Whether ``name`` is a protocol-level key exempt from naming rules."""
    limits = GA4_LIMITS["parameters"]

    if name in limits["internal"]:
        return True

    match = ITEM_PARAMETER_PATTERN.match(name)
    if match:
        return 1 <= int(match.group(1)) <= GA4_LIMITS["items"]["max_per_event"]

    return name.startswith(limits["internal_prefixes"])


def _invalid_hit(error: ValidationError) -> Violation:
    fields = [".".join(str(part) for part in detail["loc"]) for detail in error.errors()]
    reasons = [f"{field}: {detail['msg']}" for field, detail in zip(fields, error.errors())]
    return Violation(
        severity=Severity.ERROR,
        type="INVALID_HIT",
        message=f"Hit could not be read: {'; '.join(reasons)}",
        details={"fields": fields},
    )


def is_universal_analytics(hit: NetworkHit) -> bool:
    """Detect hits sent with the discontinued Universal Analytics protocol."""
    if hit.measurement_id and hit.measurement_id.startswith("UA-"):
        return True
    if hit.url and "/j/collect" in hit.url:
        return True
    if hit.raw_params.get("t"):
        return True
    return hit.raw_params.get("v") == "1"


class GA4Validator:
    """Validates GA4 hits against protocol limits and naming rules."""

    def __init__(self, strict: bool = False, check_reserved: bool = True, check_automatic: bool = True):
        """Initialize the validator.

        Args:
            strict: Report warnings as errors
            check_reserved: Flag reserved event and parameter names
            check_automatic: Flag automatically collected event names (info)
        """
        self.strict = strict
        self.check_reserved = check_reserved
        self.check_automatic = check_automatic

    def validate_hit(self, hit: Union[NetworkHit, Mapping[str, Any]]) -> ValidationResult:
        """Validate one hit.

        Args:
            hit: Decoded hit, or a mapping with snake_case or camelCase keys

        Returns:
            Validation result; ``valid`` is False iff an error was found
        """
        if not isinstance(hit, NetworkHit):
            try:
                hit = NetworkHit.model_validate(dict(hit))
            except ValidationError as e:
                logger.debug(f"Hit could not be read for validation: {e}")
                return ValidationResult(valid=False, violations=[_invalid_hit(e)])

        violations: List[Violation] = []

        self._validate_version(hit, violations)

        if hit.event_name:
            self._validate_event_name(hit.event_name, violations)
        else:
            violations.append(Violation(
                severity=Severity.ERROR,
                type="MISSING_EVENT_NAME",
                message="Event name is required",
            ))

        if hit.parameters:
            self._validate_parameters(hit.parameters, violations)

        if hit.user_properties:
            self._validate_user_properties(hit.user_properties, violations)

        if hit.items:
            self._validate_items(hit.items, violations)

        if hit.url:
            self._validate_payload_size(hit.url, violations)

        if self.strict:
            for violation in violations:
                if violation.severity == Severity.WARNING:
                    violation.severity = Severity.ERROR.value

        valid = not any(v.severity == Severity.ERROR for v in violations)
        logger.debug(
            f"Validated hit '{hit.event_name}': valid={valid}, violations={len(violations)}"
        )
        return ValidationResult(valid=valid, violations=violations)

    def _validate_version(self, hit: NetworkHit, violations: List[Violation]) -> None:
        if is_universal_analytics(hit):
            violations.append(Violation(
                severity=Severity.ERROR,
                type="DEPRECATED_UNIVERSAL_ANALYTICS",
                message=(
                    "Universal Analytics (UA) was discontinued on July 1, 2023. "
                    "Migrate to Google Analytics 4 (GA4)."
                ),
                details={
                    "measurement_id": hit.measurement_id,
                    "url": hit.url,
                    "discontinued_date": "2023-07-01",
                },
            ))
            return

        version = hit.raw_params.get("v")
        if version and version != "2":
            violations.append(Violation(
                severity=Severity.WARNING,
                type="UNKNOWN_VERSION_PARAMETER",
                message=f'Unknown version parameter "v={version}". GA4 should use "v=2"',
                details={"version": version, "measurement_id": hit.measurement_id},
            ))

    def _validate_event_name(self, event_name: str, violations: List[Violation]) -> None:
        limits = GA4_LIMITS["event_name"]

        if len(event_name) > limits["max_length"]:
            violations.append(Violation(
                severity=Severity.ERROR,
                type="EVENT_NAME_TOO_LONG",
                message=(
                    f'Event name "{event_name}" has {len(event_name)} characters '
                    f'(max: {limits["max_length"]})'
                ),
                details={
                    "event_name": event_name,
                    "length": len(event_name),
                    "limit": limits["max_length"],
                },
            ))

        if not limits["pattern"].match(event_name):
            violations.append(Violation(
                severity=Severity.ERROR,
                type="EVENT_NAME_INVALID_FORMAT",
                message=(
                    f'Event name "{event_name}" has invalid format. Must start with a '
                    "letter and contain only letters, numbers and underscores"
                ),
                details={"event_name": event_name, "pattern": limits["pattern"].pattern},
            ))

        for prefix in limits["reserved_prefixes"]:
            if event_name.startswith(prefix):
                violations.append(Violation(
                    severity=Severity.WARNING,
                    type="EVENT_NAME_RESERVED_PREFIX",
                    message=f'Event name "{event_name}" uses reserved prefix "{prefix}"',
                    details={"event_name": event_name, "prefix": prefix},
                ))

        if self.check_reserved and event_name in limits["reserved"]:
            violations.append(Violation(
                severity=Severity.WARNING,
                type="EVENT_NAME_RESERVED",
                message=f'Event name "{event_name}" is reserved by GA4',
                details={"event_name": event_name},
            ))

        if self.check_automatic and event_name in limits["automatic"]:
            violations.append(Violation(
                severity=Severity.INFO,
                type="EVENT_NAME_AUTOMATIC",
                message=(
                    f'Event "{event_name}" is automatically collected by GA4. '
                    "Consider if manual tracking is necessary"
                ),
                details={"event_name": event_name},
            ))

    def _validate_parameters(self, parameters: Mapping[str, Any], violations: List[Violation]) -> None:
        limits = GA4_LIMITS["parameters"]

        if len(parameters) > limits["max_per_event"]:
            violations.append(Violation(
                severity=Severity.ERROR,
                type="TOO_MANY_PARAMETERS",
                message=f'Event has {len(parameters)} parameters (max: {limits["max_per_event"]})',
                details={"count": len(parameters), "limit": limits["max_per_event"]},
            ))

        for name, value in parameters.items():
            if is_internal_parameter(name):
                continue

            if len(name) > limits["name_max_length"]:
                violations.append(Violation(
                    severity=Severity.ERROR,
                    type="PARAMETER_NAME_TOO_LONG",
                    message=(
                        f'Parameter "{name}" has {len(name)} characters '
                        f'(max: {limits["name_max_length"]})'
                    ),
                    details={
                        "parameter": name,
                        "length": len(name),
                        "limit": limits["name_max_length"],
                    },
                ))

            if not limits["name_pattern"].match(name):
                violations.append(Violation(
                    severity=Severity.ERROR,
                    type="PARAMETER_NAME_INVALID_FORMAT",
                    message=f'Parameter "{name}" has invalid format',
                    details={"parameter": name},
                ))

            if isinstance(value, str) and len(value) > limits["value_max_length"]:
                violations.append(Violation(
                    severity=Severity.ERROR,
                    type="PARAMETER_VALUE_TOO_LONG",
                    message=(
                        f'Parameter "{name}" value has {len(value)} characters '
                        f'(max: {limits["value_max_length"]})'
                    ),
                    details={
                        "parameter": name,
                        "length": len(value),
                        "limit": limits["value_max_length"],
                    },
                ))

            if self.check_reserved and name in limits["reserved"]:
                violations.append(Violation(
                    severity=Severity.WARNING,
                    type="PARAMETER_NAME_RESERVED",
                    message=f'Parameter "{name}" is reserved by GA4',
                    details={"parameter": name},
                ))

            for prefix in limits["reserved_prefixes"]:
                if name.startswith(prefix):
                    violations.append(Violation(
                        severity=Severity.WARNING,
                        type="PARAMETER_RESERVED_PREFIX",
                        message=f'Parameter "{name}" uses reserved prefix "{prefix}"',
                        details={"parameter": name, "prefix": prefix},
                    ))
                    break

    def _validate_user_properties(self, properties: Mapping[str, Any], violations: List[Violation]) -> None:
        limits = GA4_LIMITS["user_properties"]

        if len(properties) > limits["max_count"]:
            violations.append(Violation(
                severity=Severity.ERROR,
                type="TOO_MANY_USER_PROPERTIES",
                message=f'{len(properties)} user properties (max: {limits["max_count"]})',
                details={"count": len(properties), "limit": limits["max_count"]},
            ))

        for name, value in properties.items():
            if len(name) > limits["name_max_length"]:
                violations.append(Violation(
                    severity=Severity.ERROR,
                    type="USER_PROPERTY_NAME_TOO_LONG",
                    message=(
                        f'User property "{name}" has {len(name)} characters '
                        f'(max: {limits["name_max_length"]})'
                    ),
                    details={
                        "property": name,
                        "length": len(name),
                        "limit": limits["name_max_length"],
                    },
                ))

            if isinstance(value, str) and len(value) > limits["value_max_length"]:
                violations.append(Violation(
                    severity=Severity.ERROR,
                    type="USER_PROPERTY_VALUE_TOO_LONG",
                    message=(
                        f'User property "{name}" value has {len(value)} characters '
                        f'(max: {limits["value_max_length"]})'
                    ),
                    details={
                        "property": name,
                        "length": len(value),
                        "limit": limits["value_max_length"],
                    },
                ))

    def _validate_items(self, items: List[Dict[str, Any]], violations: List[Violation]) -> None:
        limits = GA4_LIMITS["items"]

        if len(items) > limits["max_per_event"]:
            violations.append(Violation(
                severity=Severity.ERROR,
                type="TOO_MANY_ITEMS",
                message=f'Event has {len(items)} items (max: {limits["max_per_event"]})',
                details={"count": len(items), "limit": limits["max_per_event"]},
            ))

        for index, item in enumerate(items):
            custom = [key for key in item if key not in limits["standard_fields"]]
            if len(custom) > limits["max_custom_parameters"]:
                violations.append(Violation(
                    severity=Severity.WARNING,
                    type="TOO_MANY_ITEM_CUSTOM_PARAMS",
                    message=(
                        f"Item {index} has {len(custom)} custom parameters "
                        f'(max: {limits["max_custom_parameters"]})'
                    ),
                    details={
                        "item_index": index,
                        "count": len(custom),
                        "limit": limits["max_custom_parameters"],
                    },
                ))

    def _validate_payload_size(self, url: str, violations: List[Violation]) -> None:
        limits = GA4_LIMITS["payload"]
        size = len(url.encode("utf-8"))

        if size > limits["max_size"]:
            violations.append(Violation(
                severity=Severity.ERROR,
                type="PAYLOAD_TOO_LARGE",
                message=f'Payload size is {size} bytes (max: {limits["max_size"]})',
                details={"size": size, "limit": limits["max_size"]},
            ))
        elif size > limits["max_size"] * limits["warning_ratio"]:
            violations.append(Violation(
                severity=Severity.WARNING,
                type="PAYLOAD_NEAR_LIMIT",
                message=f'Payload size is {size} bytes, approaching limit of {limits["max_size"]}',
                details={"size": size, "limit": limits["max_size"]},
            ))


def validate_hit(hit: Union[NetworkHit, Mapping[str, Any]], strict: bool = False) -> ValidationResult:
    """Validate ``hit`` with default rule switches."""
    return GA4Validator(strict=strict).validate_hit(hit)
