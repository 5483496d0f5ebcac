import logging
import sqlite3

log = logging.getLogger(__name__)

COLUMNS = (
    "created_at",
    "ip",
    "ip_raw",
    "x_forwarded_for",
    "headers",
    "user_agent",
    "fp_data",
)


class ScanStore:
    """
    Append-only SQLite table of scan visits.

    Every operation opens its own connection, so the store can be shared by
    concurrent request threads; SQLite serializes the writers.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    def connect(self) -> sqlite3.Connection:
        db = sqlite3.connect(self.db_path)
        db.row_factory = sqlite3.Row
        return db

    def initialize(self) -> bool:
        """
        Create the table if missing. Safe to run on every start.
        """
        try:
            db = self.connect()
            try:
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS scan_logs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        created_at TEXT NOT NULL,
                        ip TEXT,
                        ip_raw TEXT,
                        x_forwarded_for TEXT,
                        headers TEXT,
                        user_agent TEXT,
                        fp_data TEXT
                    );
                    """
                )
                db.commit()
            finally:
                db.close()
        except sqlite3.Error:
            log.exception("Could not open SQLite database at %s", self.db_path)
            return False

        log.info("SQLite database ready at %s", self.db_path)
        return True

    def insert(self, record: dict) -> int | None:
        """
        Append one row. Storage errors are logged and dropped.
        """
        try:
            db = self.connect()
            try:
                cur = db.execute(
                    """
                    INSERT INTO scan_logs
                        (created_at, ip, ip_raw, x_forwarded_for, headers, user_agent, fp_data)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    tuple(record.get(col) for col in COLUMNS),
                )
                db.commit()
                return cur.lastrowid
            finally:
                db.close()
        except sqlite3.Error:
            log.exception("Failed to write scan log row")
            return None

    def list_recent(self, limit: int) -> list[dict]:
        return self._select("SELECT * FROM scan_logs ORDER BY id DESC LIMIT ?", (limit,))

    def list_all(self) -> list[dict]:
        return self._select("SELECT * FROM scan_logs ORDER BY id DESC")

    def _select(self, sql, params=()):
        db = self.connect()
        try:
            return [dict(row) for row in db.execute(sql, params).fetchall()]
        finally:
            db.close()
