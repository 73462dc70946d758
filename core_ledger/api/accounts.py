"""
Account endpoints
"""

from fastapi import APIRouter, Depends, status

from .dependencies import LedgerSystem, get_ledger_system, get_request_context
from .errors import http_error
from .schemas import CreateAccountRequest, account_to_dict, balance_to_dict
from ..context import RequestContext
from ..errors import LedgerError


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_account(
    request: CreateAccountRequest,
    system: LedgerSystem = Depends(get_ledger_system),
    context: RequestContext = Depends(get_request_context)
):
    """Create a new account"""
    try:
        account = system.account_manager.create_account(
            name=request.name,
            description=request.description,
            context=context
        )
    except LedgerError as e:
        raise http_error(e)

    return {"data": account_to_dict(account), "message": "Account created successfully"}


@router.get("")
def list_accounts(system: LedgerSystem = Depends(get_ledger_system)):
    """List active accounts"""
    accounts = system.account_manager.list_accounts()
    return {
        "data": [account_to_dict(account) for account in accounts],
        "message": "Accounts retrieved successfully"
    }


@router.get("/{account_id}")
def get_account(
    account_id: str,
    system: LedgerSystem = Depends(get_ledger_system),
    context: RequestContext = Depends(get_request_context)
):
    """Get account by ID"""
    try:
        account = system.account_manager.get_account(account_id, context=context)
    except LedgerError as e:
        raise http_error(e)

    return {"data": account_to_dict(account), "message": "Account retrieved successfully"}


@router.get("/{account_id}/balance")
def get_balance(
    account_id: str,
    system: LedgerSystem = Depends(get_ledger_system),
    context: RequestContext = Depends(get_request_context)
):
    """Get account balance"""
    try:
        balance = system.account_manager.get_balance(account_id, context=context)
    except LedgerError as e:
        raise http_error(e)

    return {"data": balance_to_dict(balance), "message": "Account balance retrieved successfully"}
