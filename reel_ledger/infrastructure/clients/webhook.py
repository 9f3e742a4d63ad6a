"""Expense decision webhook client with exponential backoff retry logic"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from reel_ledger.config import settings
from reel_ledger.domain.exceptions import WebhookDeliveryError
from reel_ledger.domain.models import Budget, Expense, ExpenseStatus
from reel_ledger.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter

EXPENSE_APPROVED = "EXPENSE_APPROVED"
EXPENSE_REJECTED = "EXPENSE_REJECTED"

logger = logging.getLogger(__name__)


def build_expense_event(budget: Budget, expense: Expense, actor_id: str) -> Dict[str, Any]:
    """Payload announcing an approval or rejection"""
    return {
        "event": EXPENSE_APPROVED if expense.status == ExpenseStatus.APPROVED else EXPENSE_REJECTED,
        "budget_id": budget.id,
        "expense_id": expense.id,
        "category_id": expense.category_id,
        "amount_cents": expense.amount_cents,
        "currency": budget.currency,
        "actor_id": actor_id,
    }


class ExpenseWebhookClient:
    """Client for posting expense decisions to an external accounting system"""

    def __init__(
        self,
        webhook_url: str,
        max_retries: Optional[int] = None,
        backoff_base: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.max_retries = max_retries if max_retries is not None else settings.webhook_max_retries
        self.backoff_base = backoff_base if backoff_base is not None else settings.webhook_backoff_base
        self.transport = transport

    async def send_expense_event(self, payload: Dict[str, Any]) -> None:
        """
        Send an expense decision event with retry logic.

        Retry strategy:
        - Exponential backoff: base * 2^(attempt-1) between attempts
        - Retries on 5xx errors and network failures; 4xx is not retried
        - Tracks latency histogram and failure counter

        Raises:
            WebhookDeliveryError: When the event could not be delivered
        """
        attempt = 0
        last_error: Optional[Exception] = None
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds, transport=self.transport) as client:
            while True:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                    return

                except httpx.HTTPStatusError as e:
                    webhook_failure_counter.inc()
                    if e.response.status_code < 500:
                        raise WebhookDeliveryError(
                            f"Webhook refused {payload.get('event')}: {e.response.status_code}"
                        ) from e
                    attempt += 1
                    last_error = e

                except httpx.RequestError as e:
                    webhook_failure_counter.inc()
                    attempt += 1
                    last_error = e

                if attempt >= self.max_retries:
                    logger.error(
                        "Webhook delivery failed",
                        extra={"event": payload.get("event"), "expense_id": payload.get("expense_id"), "attempts": attempt},
                    )
                    raise WebhookDeliveryError(
                        f"Webhook delivery failed after {attempt} attempts"
                    ) from last_error

                backoff = self.backoff_base * (2 ** (attempt - 1))
                await asyncio.sleep(backoff)


async def notify_expense_decision(client: ExpenseWebhookClient, payload: Dict[str, Any]) -> None:
    """Background task: deliver an expense event, logging a final failure"""
    try:
        await client.send_expense_event(payload)
    except WebhookDeliveryError as e:
        logger.error(f"Expense event not delivered: {e}", extra={"expense_id": payload.get("expense_id")})
