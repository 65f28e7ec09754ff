"""Read-only project discovery by ledger identity."""

from checkpoint.discovery.resolver import ProjectResolver
from checkpoint.discovery.service import ProjectQueryService

__all__ = ["ProjectResolver", "ProjectQueryService"]
