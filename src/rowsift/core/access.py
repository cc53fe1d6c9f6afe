"""Access gate consulted before any row is read.

Tenant membership and per-table read permissions belong to the host application. It installs an
``AccessGate`` with ``set_access_gate``; the pipeline only calls ``authorize`` and lets
``AuthorizationError`` propagate.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Principal(BaseModel):
    """Caller identity returned by the gate."""

    user_id: str | None = None
    role: str = "MEMBER"


class AccessGate(Protocol):
    """Authorization hook for table reads."""

    async def authorize(
        self, tenant_id: int, table_id: int, headers: Mapping[str, str]
    ) -> Principal:
        """Return the caller or raise AuthorizationError (401 or 403)."""
        ...


class PermitAllGate:
    """Gate that admits every caller; only suitable behind an authenticating proxy or in tests."""

    async def authorize(
        self, tenant_id: int, table_id: int, headers: Mapping[str, str]
    ) -> Principal:
        logger.debug("PermitAllGate admitted read of table %s in tenant %s", table_id, tenant_id)
        return Principal(user_id=headers.get("x-user-id"), role="ADMIN")
