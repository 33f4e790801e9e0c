from __future__ import annotations

import os
from datetime import timedelta

from hypothesis import HealthCheck, Phase, settings

# Default: derandomized so table-model failures reproduce across machines.
settings.register_profile(
    "default",
    max_examples=60,
    deadline=timedelta(milliseconds=800),
    derandomize=True,
    print_blob=True,
)

# Quick local loop over short operation sequences.
settings.register_profile(
    "dev",
    max_examples=25,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)

# CI: long operation sequences push probing tables through several growths.
settings.register_profile(
    "ci",
    max_examples=300,
    deadline=None,
    print_blob=True,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.filter_too_much],
    phases=(Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink),
)

active_profile = os.getenv("INTHASH_HYPOTHESIS_PROFILE", os.getenv("HYPOTHESIS_PROFILE", "default"))
if active_profile not in ("default", "dev", "ci"):
    active_profile = "default"
settings.load_profile(active_profile)

__all__ = ["active_profile"]
