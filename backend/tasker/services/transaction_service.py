"""
Campus Tasker Backend - Transaction Service
===========================================

What:  The caller's wallet ledger: list entries and append new ones.
Who:   /api/transactions routes. Users only ever see their own entries.
"""

import logging
from typing import List

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tasker import policies
from tasker.exceptions import DatabaseError, TaskerError
from tasker.models.transaction import Transaction
from tasker.models.user import UserProfile
from tasker.schemas.transaction import TransactionCreate, TransactionResponse

logger = logging.getLogger(__name__)


class TransactionService:

    async def list_transactions(self, db: AsyncSession, caller: UserProfile) -> List[TransactionResponse]:
        try:
            result = await db.execute(
                select(Transaction)
                .where(Transaction.user_id == caller.id)
                .order_by(desc(Transaction.created_at))
            )
            return [
                TransactionResponse.model_validate(entry)
                for entry in result.scalars().all()
                if policies.allowed("transactions", "select", caller, entry)
            ]
        except SQLAlchemyError as e:
            logger.error("Database error listing transactions: %s", str(e))
            raise DatabaseError(message="Could not retrieve transactions. Please try again.")

    async def record_transaction(
        self,
        db: AsyncSession,
        caller: UserProfile,
        data: TransactionCreate,
    ) -> TransactionResponse:
        """Append a credit (amount > 0) or debit (amount < 0) to the caller's ledger."""
        try:
            entry = Transaction(
                user_id=caller.id,
                amount=data.amount,
                description=data.description or None,
            )
            policies.enforce("transactions", "insert", caller, entry)

            db.add(entry)
            await db.flush()
            logger.info("Transaction %s recorded for %s: %+d", entry.id, caller.id, entry.amount)
            return TransactionResponse.model_validate(entry)

        except TaskerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error recording transaction: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not record the transaction. Please try again.")


# ── Singleton Instance ────────────────────────────────────────────────────
transaction_service = TransactionService()
