"""Bundled configuration files for Scorefree.

``classifier.yaml`` tunes the spoiler classifier and ``rate_limits.yaml`` sets the
outbound request budgets. Both are optional; missing files fall back to model defaults.
"""

from pathlib import Path

CONFIG_ROOT = Path(__file__).resolve().parent
CLASSIFIER_CONFIG = CONFIG_ROOT / "classifier.yaml"
RATE_LIMITS_CONFIG = CONFIG_ROOT / "rate_limits.yaml"

__all__ = ["CLASSIFIER_CONFIG", "CONFIG_ROOT", "RATE_LIMITS_CONFIG"]
