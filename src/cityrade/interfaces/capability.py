"""Capability Handler Protocol Interface.

Extensions register named handlers with the capability registry and talk to
the core through a fixed message contract instead of runtime type inspection.
"""

from typing import Protocol

from cityrade.domain.capabilities import CapabilityMessage, CapabilityReply


class CapabilityHandler(Protocol):
    """Protocol defining a pluggable capability."""

    name: str
    version: str
    description: str

    def handle(self, message: CapabilityMessage) -> CapabilityReply:
        """Process a message addressed to this capability.

        Args:
            message: Topic and payload sent by the core or another caller

        Returns:
            CapabilityReply describing the outcome
        """
        ...
