"""
Pydantic schemas for API requests and responses
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from .errors import U64_MAX


def amount_field(description: str, default=...):
    return Field(default, ge=0, le=U64_MAX, description=description)


class CreateTokenRequest(BaseModel):
    name: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=1)
    decimals: int = Field(..., ge=0, le=255, description="Display precision")
    total_supply: int = amount_field("Initial supply, credited to the caller", 0)


class OpenAccountRequest(BaseModel):
    owner: Optional[str] = Field(None, description="Defaults to the caller")


class TransferRequest(BaseModel):
    to: str
    value: int = amount_field("Amount to move")


class TransferFromRequest(BaseModel):
    from_: Optional[str] = Field(None, alias="from", description="Defaults to the caller")
    to: str
    value: int = amount_field("Amount to move")


class ApproveRequest(BaseModel):
    spender: str
    value: int = amount_field("Amount added to the current allowance")


class IncreaseAllowanceRequest(BaseModel):
    spender: str
    added_value: int = amount_field("Amount added to the allowance")


class DecreaseAllowanceRequest(BaseModel):
    spender: str
    subtracted_value: int = amount_field("Amount removed from the allowance")


class MintRequest(BaseModel):
    to: Optional[str] = Field(None, description="Defaults to the caller")
    value: int = amount_field("Amount to mint")


class BurnRequest(BaseModel):
    from_: Optional[str] = Field(None, alias="from", description="Defaults to the caller")
    value: int = amount_field("Amount to burn")


class AccountModel(BaseModel):
    owner: str
    balance: int
    allowances: Dict[str, int] = Field(default_factory=dict)


class TokenSnapshot(BaseModel):
    name: str
    symbol: str
    decimals: int
    total_supply: int
    accounts: List[AccountModel] = Field(default_factory=list)
