"""
Pydantic schemas for API requests and responses
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..accounts import Account, AccountBalance
from ..amounts import format_amount
from ..transactions import Transaction


class CreateAccountRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, examples=["John Doe"])
    description: Optional[str] = Field(None, max_length=255, examples=["Personal savings account"])


class DepositRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    account_id: str = Field(..., alias="accountId", description="Account to deposit funds to")
    amount: Any = Field(..., description="Positive amount, at most 2 decimal places; validated by the ledger")
    description: Optional[str] = Field(None, max_length=255, examples=["Salary deposit"])


class WithdrawRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    account_id: str = Field(..., alias="accountId", description="Account to withdraw funds from")
    amount: Any = Field(..., description="Positive amount, at most 2 decimal places; validated by the ledger")
    description: Optional[str] = Field(None, max_length=255, examples=["ATM withdrawal"])


def account_to_dict(account: Account) -> Dict[str, Any]:
    return {
        "id": account.id,
        "name": account.name,
        "balance": format_amount(account.balance),
        "description": account.description,
        "isActive": account.is_active,
        "createdAt": account.created_at.isoformat(),
        "updatedAt": account.updated_at.isoformat(),
    }


def balance_to_dict(balance: AccountBalance) -> Dict[str, Any]:
    return {"accountId": balance.account_id, "balance": format_amount(balance.balance)}


def transaction_to_dict(transaction: Transaction) -> Dict[str, Any]:
    return {
        "id": transaction.id,
        "type": transaction.type.value,
        "amount": format_amount(transaction.amount),
        "description": transaction.description,
        "accountId": transaction.account_id,
        "createdAt": transaction.created_at.isoformat(),
        "updatedAt": transaction.updated_at.isoformat(),
    }
