import logging
import smtplib
import ssl
from concurrent.futures import Future, ThreadPoolExecutor
from email.message import EmailMessage

from scanlog.geo import CountryLookup

log = logging.getLogger(__name__)


class Notifier:
    """
    Best-effort "someone scanned the code" email.

    notify() hands delivery to a background thread and returns immediately.
    Nothing raised while building or sending a message ever reaches the
    caller; it is logged and dropped.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        recipient: str | None = None,
        subject: str = "Envelope opened",
        use_ssl: bool | None = None,
        geo: CountryLookup | None = None,
        executor: ThreadPoolExecutor | None = None,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username
        self.recipient = recipient or username
        self.subject = subject
        # implicit TLS on 465, STARTTLS everywhere else unless told otherwise
        self.use_ssl = port == 465 if use_ssl is None else use_ssl
        self.geo = geo
        self.executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="notifier"
        )

    @classmethod
    def from_config(cls, config, geo: CountryLookup | None = None):
        notifier = cls(
            host=config.get("SMTP_HOST"),
            port=int(config.get("SMTP_PORT") or 587),
            username=config.get("SMTP_USER"),
            password=config.get("SMTP_PASS"),
            sender=config.get("EMAIL_FROM"),
            recipient=config.get("EMAIL_TO"),
            subject=config.get("EMAIL_SUBJECT") or "Envelope opened",
            use_ssl=config.get("SMTP_USE_SSL"),
            geo=geo,
        )
        if not notifier.enabled:
            log.warning("SMTP_USER or SMTP_PASS not set; notification emails are disabled.")
        return notifier

    @property
    def enabled(self) -> bool:
        return bool(self.username and self.password)

    def notify(self, created_at: str, ip: str | None, user_agent: str) -> Future | None:
        if not self.enabled:
            log.warning("Mailer not configured; skipping notification email.")
            return None
        try:
            return self.executor.submit(self._send, created_at, ip, user_agent)
        except RuntimeError:
            # executor already shut down
            log.exception("Could not schedule notification email")
            return None

    def build_message(self, created_at: str, ip: str | None, user_agent: str) -> EmailMessage:
        country = self.geo.country(ip) if self.geo else "UNK"
        text = "\n".join(
            [
                "A scan of the security code was detected.",
                "",
                f"Date/time (UTC): {created_at}",
                f"IP: {ip or 'unknown'}",
                f"Country: {country}",
                f"User-Agent: {user_agent or ''}",
                "",
                "Full details are available at /admin/logs or as a download from /admin/logs.csv.",
            ]
        )

        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = self.recipient
        msg["Subject"] = self.subject
        msg.set_content(text)
        return msg

    def deliver(self, msg: EmailMessage):
        context = ssl.create_default_context()
        if self.use_ssl:
            with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=30) as s:
                s.login(self.username, self.password)
                s.send_message(msg)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=30) as s:
                s.starttls(context=context)
                s.login(self.username, self.password)
                s.send_message(msg)

    def _send(self, created_at, ip, user_agent) -> bool:
        try:
            self.deliver(self.build_message(created_at, ip, user_agent))
        except Exception:
            log.exception("Error sending notification email")
            return False
        log.info("Notification email sent to %s", self.recipient)
        return True

    def shutdown(self, wait: bool = True):
        self.executor.shutdown(wait=wait)
        if self.geo is not None:
            self.geo.close()
