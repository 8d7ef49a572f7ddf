"""
Transaction coordinator for writes spanning more than one table.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from listing_api.utils.exceptions import StoreError
import logging

logger = logging.getLogger(__name__)


class TransactionCoordinator:
    """
    Runs a block of repository calls as one all-or-nothing unit.

    Repositories used inside the block must flush only (commit=False). The block
    commits when it exits normally; any exception, including a failed commit,
    rolls everything back. Database errors are re-raised as StoreError, other
    errors propagate unchanged.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """
        Open a transaction for the given operation.

        Args:
            operation: Short description used in log messages

        Yields:
            The session the transaction runs on
        """
        logger.debug(f"Beginning transaction: {operation}")
        try:
            yield self.db
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.warning(f"Rolled back transaction '{operation}': {e}")
            raise StoreError(str(e)) from e
        except BaseException as e:
            await self.db.rollback()
            logger.warning(f"Rolled back transaction '{operation}': {e}")
            raise

        logger.debug(f"Committed transaction: {operation}")
