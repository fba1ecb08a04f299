from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import ExcusedPolicy
from .policies.base import CountingPolicy
from .policies.excused_neutral_policy import ExcusedNeutralPolicy
from .policies.standard_policy import StandardPolicy


@dataclass
class CountingPolicyFactory:
    """Factory Pattern: choose the counting rule configured for excused records."""

    def for_policy(self, policy: ExcusedPolicy | str) -> CountingPolicy:
        if ExcusedPolicy(policy) == ExcusedPolicy.EXCUSED_NEUTRAL:
            return ExcusedNeutralPolicy()
        return StandardPolicy()
