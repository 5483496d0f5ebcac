import logging
import sqlite3

from flask import Flask, Response, jsonify, render_template_string, request, url_for

from scanlog.config import Config
from scanlog.export import render_csv
from scanlog.geo import CountryLookup
from scanlog.notifier import Notifier
from scanlog.store import ScanStore
from scanlog.visits import VisitLogger, capture_request

log = logging.getLogger(__name__)

RECENT_LIMIT = 100

# -----------------------------------------------------------------------------
# Page shown to whoever scans the code.
# The script posts a small browser fingerprint back without blocking render.
# -----------------------------------------------------------------------------
SCAN_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>Verification recorded</title>
  <meta name="viewport" content="width=device-width, initial-scale=1" />
</head>
<body style="font-family: system-ui, sans-serif; padding: 1.5rem;">
  <h1>Verification recorded</h1>
  <p>The code has been read successfully.</p>
  <p>You can close this page.</p>

  <script>
    (function() {
      var fp = {
        userAgent: navigator.userAgent,
        language: navigator.language,
        languages: navigator.languages,
        platform: navigator.platform,
        screen: {
          width: window.screen && window.screen.width,
          height: window.screen && window.screen.height
        },
        window: {
          innerWidth: window.innerWidth,
          innerHeight: window.innerHeight
        },
        timezone: (window.Intl && Intl.DateTimeFormat && Intl.DateTimeFormat().resolvedOptions().timeZone) || null
      };

      try {
        fetch({{ fp_url | tojson }}, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify(fp)
        }).catch(function(err) {
          console.error('Error sending fingerprint', err);
        });
      } catch (err) {
        console.error('Error sending fingerprint', err);
      }
    })();
  </script>
</body>
</html>
"""

DB_ERROR_MESSAGE = "Error querying the database"


def create_app(overrides=None, store: ScanStore | None = None, notifier: Notifier | None = None):
    """
    Build the app. Store and notifier are created once here (or passed in)
    and handed to the route handlers.
    """
    app = Flask(__name__)
    # /admin/logs keeps the table's column order
    app.json.sort_keys = False
    app.config.from_object(Config)
    if overrides:
        app.config.from_mapping(overrides)

    if store is None:
        store = ScanStore(app.config["SCANLOG_DB"])
    # an unusable database is only logged; the server still comes up
    store.initialize()

    if notifier is None:
        notifier = Notifier.from_config(
            app.config, geo=CountryLookup(app.config.get("GEOIP_DB_PATH"))
        )

    register_routes(app, store, VisitLogger(store), notifier)
    return app


def plain_error(message: str, status: int = 500) -> Response:
    return Response(message, status=status, mimetype="text/plain")


def register_routes(app: Flask, store: ScanStore, visits: VisitLogger, notifier: Notifier):
    # -------------------------------------------------------------------------
    # Landing / health
    # -------------------------------------------------------------------------
    @app.route("/")
    def index():
        return Response("Server running. Use /scan to record a scan.", mimetype="text/plain")

    @app.route("/healthz")
    def healthz():
        return "ok", 200

    # -------------------------------------------------------------------------
    # Ingest routes
    # -------------------------------------------------------------------------
    @app.route("/scan")
    def scan():
        """
        URL encoded in the QR code.
        Logs the bare request, fires the notification and returns the page
        that submits the fingerprint.
        """
        ctx = capture_request(request)
        created_at = visits.log_request(ctx)

        # fire-and-forget; the response never waits on delivery
        try:
            notifier.notify(created_at, ctx.ip, ctx.user_agent)
        except Exception:
            log.exception("Notifier raised while scheduling")

        return render_template_string(SCAN_PAGE, fp_url=url_for("scan_fp"))

    @app.route("/scan/fp", methods=["POST"])
    def scan_fp():
        """
        Fingerprint posted by the scan page. Any JSON is stored verbatim;
        a missing or broken body just means no fingerprint.
        """
        ctx = capture_request(request)
        fp_data = request.get_json(force=True, silent=True)
        visits.log_request(ctx, fp_data=fp_data)
        return "", 204

    # -------------------------------------------------------------------------
    # Admin views (no auth; restrict at the network level)
    # -------------------------------------------------------------------------
    @app.route("/admin/logs")
    def admin_logs():
        try:
            rows = store.list_recent(RECENT_LIMIT)
        except sqlite3.Error:
            log.exception("Error querying the database")
            return plain_error(DB_ERROR_MESSAGE)
        return jsonify(rows)

    @app.route("/admin/logs.csv")
    def admin_logs_csv():
        try:
            rows = store.list_all()
        except sqlite3.Error:
            log.exception("Error querying the database")
            return plain_error(DB_ERROR_MESSAGE)

        resp = Response(render_csv(rows), mimetype="text/csv")
        resp.headers["Content-Type"] = "text/csv; charset=utf-8"
        resp.headers["Content-Disposition"] = 'attachment; filename="scan_logs.csv"'
        return resp


if __name__ == "__main__":
    # Dev mode, containers should serve scanlog.wsgi:app
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = create_app()
    app.run(host="0.0.0.0", port=app.config["PORT"])
