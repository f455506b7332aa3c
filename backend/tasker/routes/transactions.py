from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasker.database import get_db_session
from tasker.dependencies import get_current_user
from tasker.models.user import UserProfile
from tasker.schemas.transaction import TransactionCreate, TransactionResponse
from tasker.services.transaction_service import transaction_service

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


@router.get(
    "",
    response_model=List[TransactionResponse],
    summary="Your wallet ledger, newest first",
)
async def list_transactions(
    caller: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TransactionResponse]:
    return await transaction_service.list_transactions(db=db, caller=caller)


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a credit or debit on your ledger",
)
async def record_transaction(
    body: TransactionCreate,
    caller: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TransactionResponse:
    return await transaction_service.record_transaction(db=db, caller=caller, data=body)
