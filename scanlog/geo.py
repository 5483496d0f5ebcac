import logging
import os

import geoip2.database
import geoip2.errors
import maxminddb

log = logging.getLogger(__name__)


class CountryLookup:
    """
    ISO country code from IP using a local MaxMind DB.
    Used only to enrich notification mails; never stored.
    """

    def __init__(self, db_path: str | None):
        self.db_path = db_path
        self._reader = None
        self._broken = False

    def get_reader(self):
        if self._reader is not None or self._broken:
            return self._reader
        if not self.db_path or not os.path.exists(self.db_path):
            return None
        try:
            self._reader = geoip2.database.Reader(self.db_path)
        except (maxminddb.InvalidDatabaseError, OSError, ValueError):
            # unreadable DB: stop retrying, every lookup answers UNK
            self._broken = True
            log.warning("Could not open GeoIP database at %s; country lookups disabled.",
                        self.db_path, exc_info=True)
        return self._reader

    def country(self, raw_ip: str | None) -> str:
        reader = self.get_reader()
        if reader is None or not raw_ip:
            return "UNK"
        try:
            resp = reader.country(raw_ip)
            code = resp.country.iso_code or resp.registered_country.iso_code
            return code if code else "UNK"
        except (geoip2.errors.AddressNotFoundError, ValueError):
            return "UNK"

    def close(self):
        if self._reader is not None:
            self._reader.close()
            self._reader = None
