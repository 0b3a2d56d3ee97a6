"""Pydantic schemas for API request/response validation"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional


class TransactionRequest(BaseModel):
    """Request body for POST /api/v1/wallet/transaction"""

    model_config = ConfigDict(populate_by_name=True)

    amount: Decimal = Field(..., description="Transaction amount, must not be negative")
    timestamp: datetime = Field(..., alias="datetime", description="When the transaction happened")


class HistoryRequest(BaseModel):
    """Request body for POST /api/v1/wallet/history"""

    start_datetime: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("startDatetime", "startDateTime", "start_datetime"),
        description="Range start, rounded down to the hour; omitted means from the beginning",
    )
    end_datetime: datetime = Field(
        ...,
        validation_alias=AliasChoices("endDatetime", "endDateTime", "end_datetime"),
        description="Range end, rounded up to the hour",
    )


class SnapshotSchema(BaseModel):
    """Cumulative balance at an instant"""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime = Field(..., alias="datetime")
    amount: Decimal


class MessageResponse(BaseModel):
    message: str
