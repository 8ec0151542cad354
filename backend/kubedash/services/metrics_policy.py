"""
Metrics availability policy.
Decides whether observed usage exists for an overview build.
"""

import logging
from typing import Any

from kubedash.models.kubernetes import ResourceFigure

logger = logging.getLogger(__name__)


class MetricsAvailabilityPolicy:
    """
    Strict absent-when-unavailable policy for metrics-server usage.

    Availability is decided once per build from a single probe. When the
    add-on is unavailable every usage figure is absent; no estimate is ever
    substituted. When it is available, entities without a sample contribute
    zero.
    """

    def __init__(self, enabled: bool = True):
        """
        Initialize the policy.

        Args:
            enabled: False to ignore the add-on entirely, as if it were down
        """
        self.enabled = enabled

    def is_available(self, probe: Any) -> bool:
        """Interpret the probe result. Anything but a True probe means unavailable."""
        if not self.enabled:
            return False
        if isinstance(probe, BaseException):
            logger.warning(f"Metrics server probe failed: {probe}")
            return False
        return probe is True

    def degraded_figure(self, nominal: ResourceFigure) -> ResourceFigure:
        """Copy of a figure with its usage marked as not measured."""
        return nominal.model_copy(update={"used": None})

    def apply(self, available: bool, nominal: ResourceFigure) -> ResourceFigure:
        """Keep the nominal figure when usage was measured, degrade it otherwise."""
        if available:
            return nominal
        return self.degraded_figure(nominal)
