"""
Audit logging for security-relevant events. Records go to the "mcp_auth.audit"
logger; never log tokens, codes, or passwords.
"""
import logging

from fastapi import Request

audit_logger = logging.getLogger("mcp_auth.audit")

EVENT_CLIENT_REGISTERED = "client_registered"
EVENT_CONSENT_ALLOW = "consent_allow"
EVENT_CONSENT_FAIL = "consent_fail"
EVENT_CODE_ISSUED = "code_issued"
EVENT_TOKEN_ISSUED = "token_issued"
EVENT_TOKEN_REFRESHED = "token_refreshed"
EVENT_TOKEN_FAIL = "token_fail"

OUTCOME_SUCCESS = "success"
OUTCOME_FAIL = "fail"


def get_client_ip(request: Request | None, trust_proxy: bool = False) -> str | None:
    """Client IP; with trust_proxy the first X-Forwarded-For hop wins (reverse proxy / tunnel)."""
    if request is None:
        return None
    if trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    if request.client is None:
        return None
    return getattr(request.client, "host", None)


def log_audit(
    event_type: str,
    *,
    client_id: str | None = None,
    ip: str | None = None,
    outcome: str = OUTCOME_SUCCESS,
) -> None:
    """Emit one audit record."""
    audit_logger.info(
        "event=%s client_id=%s ip=%s outcome=%s",
        event_type,
        client_id or "-",
        ip or "-",
        outcome,
        extra={"audit_event": event_type, "audit_outcome": outcome},
    )
