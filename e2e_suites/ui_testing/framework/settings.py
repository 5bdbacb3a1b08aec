"""
================================================================================
Interaction Settings
================================================================================

Process-wide defaults for timeouts, retries and the optional (slower)
verification behaviours of the element-interaction layer.

The settings object is built once from configuration and passed into
ElementActions / RetryEngine / SmartWaiter / HealthChecker, so the
behaviour of every component is fully determined by its inputs.

Configuration keys (``config/config.yaml`` or environment):
    interaction.default_timeout          INTERACTION_DEFAULT_TIMEOUT (ms)
    interaction.max_retries              INTERACTION_MAX_RETRIES
    interaction.base_retry_delay         INTERACTION_BASE_RETRY_DELAY (s)
    interaction.first_retry_delay        INTERACTION_FIRST_RETRY_DELAY (s)
    interaction.animation_delay          INTERACTION_ANIMATION_DELAY (s)
    interaction.polling_interval         INTERACTION_POLLING_INTERVAL (s)
    interaction.detailed_health_checks   INTERACTION_DETAILED_HEALTH_CHECKS
    interaction.value_verification       INTERACTION_VALUE_VERIFICATION
    interaction.performance_monitoring   INTERACTION_PERFORMANCE_MONITORING
    interaction.slow_operation_threshold INTERACTION_SLOW_OPERATION_THRESHOLD (s)
    interaction.sensitive_value_length   INTERACTION_SENSITIVE_VALUE_LENGTH
    interaction.screenshot_on_error      INTERACTION_SCREENSHOT_ON_ERROR
    interaction.screenshot_dir           INTERACTION_SCREENSHOT_DIR

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from e2e_tools.common.config_loader import ConfigLoader


DEFAULT_SCREENSHOT_DIR = Path(__file__).parent.parent / "screenshots"

# interaction.<key> in config.yaml -> InteractionSettings field
CONFIG_FIELDS = {
    "default_timeout": "default_timeout",
    "max_retries": "max_retries",
    "base_retry_delay": "base_retry_delay",
    "first_retry_delay": "first_retry_delay",
    "animation_delay": "animation_delay",
    "polling_interval": "polling_interval",
    "detailed_health_checks": "enable_health_checks",
    "value_verification": "enable_value_verification",
    "performance_monitoring": "enable_performance_monitoring",
    "slow_operation_threshold": "slow_operation_threshold",
    "sensitive_value_length": "sensitive_value_length",
    "screenshot_on_error": "screenshot_on_error",
    "screenshot_dir": "screenshot_dir",
}


@dataclass(frozen=True)
class InteractionSettings:
    """
    Immutable configuration for the interaction layer.

    Attributes:
        default_timeout: Default timeout for most operations (ms)
        max_retries: Maximum attempts for retried operations
        base_retry_delay: Base delay for exponential backoff (s)
        first_retry_delay: Fixed delay before the first retry (s)
        animation_delay: Settle delay for the "stable" wait condition (s)
        polling_interval: Poll interval for custom waits (s)
        enable_health_checks: Run detailed element health checks
        enable_value_verification: Read back values after fill
        enable_performance_monitoring: Log slow operations as performance entries
        slow_operation_threshold: Threshold for a "slow" operation (s)
        sensitive_value_length: Values longer than this are masked in logs
        screenshot_on_error: Capture a full-page screenshot during error inspection
        screenshot_dir: Directory for error screenshots
    """
    default_timeout: int = 10000
    max_retries: int = 3
    base_retry_delay: float = 0.5
    first_retry_delay: float = 0.1
    animation_delay: float = 0.1
    polling_interval: float = 0.1
    enable_health_checks: bool = False
    enable_value_verification: bool = False
    enable_performance_monitoring: bool = False
    slow_operation_threshold: float = 1.0
    sensitive_value_length: int = 6
    screenshot_on_error: bool = False
    screenshot_dir: Path = DEFAULT_SCREENSHOT_DIR

    def __post_init__(self) -> None:
        if self.default_timeout < 0:
            raise ValueError("default_timeout must be positive")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")

    @property
    def short_timeout(self) -> int:
        """Timeout for quick checks and the click primitive (ms)."""
        return self.default_timeout // 2

    @property
    def long_timeout(self) -> int:
        """Timeout for complex operations (ms)."""
        return self.default_timeout * 3

    def with_overrides(self, **changes) -> "InteractionSettings":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> "InteractionSettings":
        """
        Build settings from the configuration loader.

        Args:
            config: ConfigLoader instance. Creates (or reuses) the singleton if None.

        Returns:
            InteractionSettings populated from YAML / environment

        Raises:
            ConfigurationError: A configured value has the wrong type
            ValueError: A value is out of range (see __post_init__)
        """
        if config is None:
            config = ConfigLoader()

        defaults = cls()
        values = config.typed_section(
            "interaction",
            {key: getattr(defaults, field) for key, field in CONFIG_FIELDS.items()},
        )
        return cls(**{field: values[key] for key, field in CONFIG_FIELDS.items()})


__all__ = [
    "InteractionSettings",
    "DEFAULT_SCREENSHOT_DIR",
]
