import json
from dataclasses import dataclass, field
from datetime import datetime, timezone

from scanlog.store import ScanStore


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def to_json(value) -> str:
    # compact, same shape a browser's JSON.stringify would produce
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


@dataclass
class RequestContext:
    ip: str | None
    ip_raw: str | None
    x_forwarded_for: str | None
    headers: dict = field(default_factory=dict)
    user_agent: str = ""


def resolve_client_ip(req) -> str | None:
    """
    Proxy-aware client IP: left-most X-Forwarded-For entry, else the peer.
    """
    xff = req.headers.get("X-Forwarded-For")
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first
    return req.remote_addr


def capture_headers(req) -> dict:
    """
    Header names lower-cased; repeated headers joined with ", ".
    """
    captured = {}
    for name, value in req.headers.items():
        key = name.lower()
        if key in captured:
            captured[key] = f"{captured[key]}, {value}"
        else:
            captured[key] = value
    return captured


def capture_request(req) -> RequestContext:
    return RequestContext(
        ip=resolve_client_ip(req),
        ip_raw=req.remote_addr,
        x_forwarded_for=req.headers.get("X-Forwarded-For") or None,
        headers=capture_headers(req),
        user_agent=req.headers.get("User-Agent", ""),
    )


class VisitLogger:
    """
    Turns captured request metadata into a scan_logs row.
    """

    def __init__(self, store: ScanStore):
        self.store = store

    def log_visit(
        self,
        ip=None,
        ip_raw=None,
        x_forwarded_for=None,
        headers=None,
        user_agent="",
        fp_data=None,
        created_at=None,
    ) -> str:
        """
        Write exactly one row and return the created_at timestamp used.

        headers is always serialized (``{}`` when missing); fp_data only when
        given, otherwise the column stays NULL. Nothing is validated.
        """
        created_at = created_at or utc_now()
        self.store.insert(
            {
                "created_at": created_at,
                "ip": ip or None,
                "ip_raw": ip_raw or None,
                "x_forwarded_for": x_forwarded_for or None,
                "headers": to_json(headers or {}),
                "user_agent": user_agent or "",
                "fp_data": to_json(fp_data) if fp_data is not None else None,
            }
        )
        return created_at

    def log_request(self, ctx: RequestContext, fp_data=None) -> str:
        return self.log_visit(
            ip=ctx.ip,
            ip_raw=ctx.ip_raw,
            x_forwarded_for=ctx.x_forwarded_for,
            headers=ctx.headers,
            user_agent=ctx.user_agent,
            fp_data=fp_data,
        )
