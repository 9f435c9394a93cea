"""Apply-then-confirm helper for local changes backed by a REST call."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from order_board.api import OrderApiError

logger = logging.getLogger(__name__)


async def run_optimistic(
    apply: Callable[[], None],
    commit: Callable[[], Awaitable[None]],
    rollback: Callable[[OrderApiError], None] | None = None,
    resync: Callable[[], Awaitable[object]] | None = None,
) -> bool:
    """Run the three-step optimistic protocol.

    1. ``apply`` the local change right away.
    2. Await ``commit``.
    3. If it raises ``OrderApiError``, call ``rollback`` with the error and
       then await ``resync`` to reload server state.

    Returns True when the commit succeeded.
    """
    apply()
    try:
        await commit()
    except OrderApiError as exc:
        logger.warning("optimistic change rolled back: %s", exc)
        if rollback is not None:
            rollback(exc)
        if resync is not None:
            await resync()
        return False
    return True
