"""/api/v1/wallet - ledger writes and balance history reads"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from typing import List

from btcount.api.v1.schemas import HistoryRequest, MessageResponse, SnapshotSchema, TransactionRequest
from btcount.api.dependencies import get_request_id, get_wallet_service
from btcount.domain.exceptions import InvalidInputError, StorageError, UnexpectedTypeError
from btcount.domain.models import Transaction
from btcount.domain.wallet import WalletService
from btcount.infrastructure.observability.metrics import (
    balance_history_counter,
    balance_history_points_histogram,
    transactions_created_counter,
    transactions_rejected_counter,
)
from btcount.utils.date_utils import EPOCH

router = APIRouter()


@router.post("/transaction", status_code=201, response_model=MessageResponse)
def create_transaction(
    request_body: TransactionRequest,
    request: Request,
    wallet: WalletService = Depends(get_wallet_service),
):
    """
    Append a transaction to the ledger.

    The current-hour cache picks it up immediately; the hourly snapshot is
    written by the stat maker once the hour closes.
    """
    request_id = get_request_id(request)

    try:
        wallet.create_transaction(Transaction(amount=request_body.amount, timestamp=request_body.timestamp))
    except InvalidInputError as e:
        transactions_rejected_counter.labels(reason="invalid").inc()
        logging.warning(f"Invalid transaction: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))
    except StorageError as e:
        transactions_rejected_counter.labels(reason="storage").inc()
        logging.error(f"Unable to save transaction: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    transactions_created_counter.inc()
    return MessageResponse(message="success")


@router.post("/history", response_model=List[SnapshotSchema])
def get_balance_history(
    request_body: HistoryRequest,
    request: Request,
    wallet: WalletService = Depends(get_wallet_service),
):
    """
    Balance at the end of every hour with activity in the requested range.

    When the range reaches into the current hour the last entry is the live
    balance, stamped with the latest transaction time.
    """
    request_id = get_request_id(request)
    since = request_body.start_datetime or EPOCH

    try:
        stats = wallet.fetch_balance_by_hour(since, request_body.end_datetime)
    except InvalidInputError as e:
        balance_history_counter.labels(outcome="invalid").inc()
        logging.warning(f"Invalid history range: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))
    except (StorageError, UnexpectedTypeError) as e:
        balance_history_counter.labels(outcome="storage").inc()
        logging.error(f"Unable to fetch balance history: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    balance_history_counter.labels(outcome="ok").inc()
    balance_history_points_histogram.observe(len(stats))

    return [SnapshotSchema(timestamp=stat.timestamp, amount=stat.amount) for stat in stats]


@router.get("/balance", response_model=SnapshotSchema)
def get_current_balance(request: Request, wallet: WalletService = Depends(get_wallet_service)):
    try:
        stat = wallet.get_current_balance()
    except StorageError as e:
        logging.error(f"Unable to fetch balance: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=500, detail="Internal server error")

    return SnapshotSchema(timestamp=stat.timestamp, amount=stat.amount)
