"""Shared plumbing for engines: injected collaborators and deadlines."""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

from ..config.settings import PrAssignConfig
from ..errors import DeadlineExceeded
from ..storage.database import Database

T = TypeVar("T")


class EngineBase:
    """Holds the database, configuration and logger handed to an engine.

    Nothing here reaches for process-wide state; callers inject all three.
    """

    def __init__(
        self,
        db: Database,
        config: PrAssignConfig,
        logger: Optional[logging.Logger] = None,
    ):
        self.db = db
        self.config = config
        self.logger = logger or logging.getLogger(type(self).__module__)

    async def _run(
        self,
        operation: str,
        work: Callable[[], Awaitable[T]],
        timeout: Optional[float] = None,
    ) -> T:
        """Run ``work`` under the caller's deadline or the configured default.

        On expiry the task running the transaction is cancelled, which rolls
        the transaction back before :class:`DeadlineExceeded` is raised.
        """
        if timeout is None:
            timeout = self.config.operation_timeout
        if timeout is None:
            return await work()

        try:
            return await asyncio.wait_for(work(), timeout)
        except asyncio.TimeoutError as e:
            self.logger.error(f"{operation} exceeded its {timeout}s deadline and was rolled back")
            raise DeadlineExceeded(operation=operation, timeout=timeout) from e
