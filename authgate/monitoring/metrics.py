"""Prometheus metrics for authgate."""

from fastapi import APIRouter, Response
from prometheus_client import Counter, generate_latest, CONTENT_TYPE_LATEST


registrations = Counter(
    'authgate_registrations_total',
    'Total number of account registrations',
    ['method']
)

sign_ins = Counter(
    'authgate_sign_ins_total',
    'Total number of sign-in attempts',
    ['method', 'status']
)

tickets = Counter(
    'authgate_tickets_total',
    'Ticket lifecycle events',
    ['ticket_type', 'outcome']
)

emails = Counter(
    'authgate_emails_total',
    'Transactional emails handed to the transport',
    ['template', 'status']
)

refresh_tokens = Counter(
    'authgate_refresh_tokens_total',
    'Refresh token operations',
    ['operation', 'status']
)

router = APIRouter(tags=["monitoring"])


@router.get("/metrics", response_class=Response)
async def get_metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
