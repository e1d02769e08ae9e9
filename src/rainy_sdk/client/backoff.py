# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Backoff scheduling.

Computes the wait before the next retry from the attempt number, the
retry policy and an optional server-suggested delay. Pure apart from the
random source, which is injectable so tests are deterministic.
"""

import random
from typing import Optional

from ..core.types import RetryPolicy

_default_rng = random.Random()


def next_delay(
    attempt_number: int,
    policy: RetryPolicy,
    suggested_delay: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> Optional[float]:
    """
    Compute the wait before the next attempt.

    The exponential delay is base_delay * 2^(attempt_number - 1), capped at
    max_delay, then jittered uniformly by +/- jitter_factor and clamped to
    [0, max_delay]. A server-suggested delay replaces the computed one when
    it is longer; it is never shortened and may exceed max_delay.

    Args:
        attempt_number: 1-based number of the attempt that just failed
        policy: Retry policy
        suggested_delay: Server hint in seconds (Retry-After), if any
        rng: Random source; a module-level instance is used when omitted

    Returns:
        Seconds to wait, or None when no attempts remain
    """
    if attempt_number >= policy.max_attempts:
        return None

    rng = rng or _default_rng

    exponent = max(attempt_number - 1, 0)
    # Avoid float overflow for very large attempt counts
    if exponent >= 64:
        exponential = policy.max_delay
    else:
        exponential = min(policy.base_delay * (2 ** exponent), policy.max_delay)

    if policy.jitter_factor > 0:
        low = exponential * (1.0 - policy.jitter_factor)
        high = exponential * (1.0 + policy.jitter_factor)
        jittered = rng.uniform(low, high)
    else:
        jittered = exponential
    delay = min(max(jittered, 0.0), policy.max_delay)

    if suggested_delay is not None and suggested_delay > delay:
        return suggested_delay
    return delay


class BackoffScheduler:
    """
    Stateless delay calculator bound to a random source.

    Safe to share between concurrent calls: it keeps no per-call state.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Args:
            rng: Random source for jitter. Pass a seeded random.Random for
                reproducible delays.
        """
        self._rng = rng or random.Random()

    def next_delay(
        self,
        attempt_number: int,
        policy: RetryPolicy,
        suggested_delay: Optional[float] = None,
    ) -> Optional[float]:
        """See module-level next_delay."""
        return next_delay(attempt_number, policy, suggested_delay, self._rng)
