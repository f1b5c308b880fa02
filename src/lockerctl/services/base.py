"""BaseService — foundation for all lockerctl services.

Every service receives a :class:`Community` at construction time. Services
own their units of work via ``self._community.transaction()`` and translate
domain errors into ``ServiceResult`` failures.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lockerctl.infrastructure.community import Community

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class CapacityService(BaseService):
            def add_lockers(self, system_id: int, ...) -> ServiceResult:
                with self._community.transaction():
                    ...
    """

    def __init__(self, community: Community) -> None:
        self._community = community

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch a lifecycle event to plugins.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        try:
            self._community.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")
