"""
Config -> Kernel Bridges.

Functions that convert configuration into kernel-compatible inputs. These
live in inventory_config (the producer) because the kernel must NEVER
import inventory_config.

Usage:
    from inventory_config.bridges import transition_policy_from_config

    config = get_active_config()
    policy = transition_policy_from_config(config)
"""

from __future__ import annotations

from inventory_config.schema import EngineConfig
from inventory_kernel.domain.workflow import TransitionPolicy


def transition_policy_from_config(config: EngineConfig) -> TransitionPolicy:
    """Kernel ``TransitionPolicy`` for the configured transfer table."""
    table = config.transfer_policy
    return TransitionPolicy(
        allowed={source: frozenset(targets) for source, targets in table.allowed.items()},
        enforce=table.enforce,
    )
