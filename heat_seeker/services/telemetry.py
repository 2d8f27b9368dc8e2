"""
Best-effort position reporting to the coordinate log service.
Failures are logged and dropped; the simulation never waits on them.
"""
import logging

import requests

logger = logging.getLogger(__name__)


class CoordinateReporter:
    """Posts the rover pose every `every_n_ticks` ticks."""

    def __init__(self, base_url, every_n_ticks=30, timeout=0.5, session=None):
        self.url = base_url.rstrip("/") + "/bot/coordinates/add"
        self.every_n_ticks = max(1, int(every_n_ticks))
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.sent = 0
        self.failed = 0

    def maybe_report(self, tick, result):
        if tick % self.every_n_ticks == 0:
            return self.report(tick, result)
        return False

    def report(self, tick, result):
        # Ground plane z is the service's y
        payload = {
            "x": result.x,
            "y": result.z,
            "heading": result.heading,
            "status": result.status,
            "tick": tick,
        }
        try:
            resp = self.session.post(self.url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            self.failed += 1
            logger.warning("Coordinate report failed: %s", e)
            return False
        self.sent += 1
        return True

    def close(self):
        self.session.close()
