"""
Transaction endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from .dependencies import LedgerSystem, get_ledger_system, get_request_context
from .errors import http_error
from .schemas import DepositRequest, WithdrawRequest, transaction_to_dict
from ..context import RequestContext
from ..errors import LedgerError
from ..pagination import PaginationParams


router = APIRouter()


@router.post("/deposit", status_code=status.HTTP_201_CREATED)
def deposit(
    request: DepositRequest,
    system: LedgerSystem = Depends(get_ledger_system),
    context: RequestContext = Depends(get_request_context)
):
    """Deposit funds to an account"""
    try:
        transaction = system.transaction_processor.deposit(
            account_id=request.account_id,
            amount=request.amount,
            description=request.description,
            context=context
        )
    except LedgerError as e:
        raise http_error(e)

    return {"data": transaction_to_dict(transaction), "message": "Deposit successful"}


@router.post("/withdraw", status_code=status.HTTP_201_CREATED)
def withdraw(
    request: WithdrawRequest,
    system: LedgerSystem = Depends(get_ledger_system),
    context: RequestContext = Depends(get_request_context)
):
    """Withdraw funds from an account"""
    try:
        transaction = system.transaction_processor.withdraw(
            account_id=request.account_id,
            amount=request.amount,
            description=request.description,
            context=context
        )
    except LedgerError as e:
        raise http_error(e)

    return {"data": transaction_to_dict(transaction), "message": "Withdrawal successful"}


@router.get("/account/{account_id}")
def list_account_transactions(
    account_id: str,
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("DESC", alias="sortOrder"),
    system: LedgerSystem = Depends(get_ledger_system),
    context: RequestContext = Depends(get_request_context)
):
    """Get transactions for an account with pagination"""
    try:
        params = PaginationParams(
            page=page,
            limit=limit if limit is not None else system.config.default_page_size,
            sort_by=sort_by,
            sort_order=sort_order,
            max_limit=system.config.max_page_size
        )
        result = system.transaction_processor.list_account_transactions(
            account_id, params, context=context
        )
    except LedgerError as e:
        raise http_error(e)

    return {
        "data": [transaction_to_dict(transaction) for transaction in result.items],
        "meta": result.meta.to_dict(),
        "message": "Transactions retrieved successfully"
    }


@router.get("/{transaction_id}")
def get_transaction(
    transaction_id: str,
    system: LedgerSystem = Depends(get_ledger_system),
    context: RequestContext = Depends(get_request_context)
):
    """Get transaction by ID"""
    try:
        transaction = system.transaction_processor.get_transaction(transaction_id, context=context)
    except LedgerError as e:
        raise http_error(e)

    return {"data": transaction_to_dict(transaction), "message": "Transaction retrieved successfully"}
