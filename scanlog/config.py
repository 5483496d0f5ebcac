import os


class Config:
    # -------------------------------------------------------------------------
    # Server
    # -------------------------------------------------------------------------
    PORT = int(os.environ.get("PORT", "3000"))
    SCANLOG_DB = os.environ.get("SCANLOG_DB", "scanlogs.db")

    # -------------------------------------------------------------------------
    # Outbound mail (Outlook/Hotmail relay uses 587 + STARTTLS)
    # -------------------------------------------------------------------------
    SMTP_HOST = os.environ.get("SMTP_HOST", "smtp-mail.outlook.com")
    SMTP_PORT = int(os.environ.get("SMTP_PORT", "587"))
    SMTP_USER = os.environ.get("SMTP_USER")
    SMTP_PASS = os.environ.get("SMTP_PASS")
    # unset means "SSL only on port 465"
    SMTP_USE_SSL = (
        os.environ["SMTP_USE_SSL"].lower() in ("1", "true", "yes")
        if os.environ.get("SMTP_USE_SSL") else None
    )

    # recipient and sender fall back to SMTP_USER when unset
    EMAIL_TO = os.environ.get("EMAIL_TO")
    EMAIL_FROM = os.environ.get("EMAIL_FROM")
    EMAIL_SUBJECT = os.environ.get("EMAIL_SUBJECT", "Envelope opened")

    GEOIP_DB_PATH = os.environ.get("GEOIP_DB_PATH", "/geoip/GeoLite2-Country.mmdb")
