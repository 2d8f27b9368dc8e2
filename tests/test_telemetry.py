import logging

import requests

from heat_seeker.search_supervisor import NavState, TickResult
from heat_seeker.services.telemetry import CoordinateReporter


class FakeResponse:
    def raise_for_status(self):
        pass


class FakeSession:
    def __init__(self, fail=False):
        self.fail = fail
        self.posts = []

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json, timeout))
        if self.fail:
            raise requests.exceptions.ConnectionError("service down")
        return FakeResponse()

    def close(self):
        pass


def make_result():
    return TickResult(x=1.0, z=2.0, heading=0.5, state=NavState.EXPLORING, status="SEARCHING",
                      coverage=0.0, explored=3.0, heat_detected=False, locked=False,
                      targets_found=0)


def test_report_posts_pose():
    session = FakeSession()
    reporter = CoordinateReporter("http://localhost:3000/", every_n_ticks=10, session=session)
    assert not reporter.maybe_report(7, make_result())
    assert reporter.maybe_report(20, make_result())

    url, payload, timeout = session.posts[0]
    assert url == "http://localhost:3000/bot/coordinates/add"
    assert payload == {"x": 1.0, "y": 2.0, "heading": 0.5, "status": "SEARCHING", "tick": 20}
    assert timeout == reporter.timeout
    assert reporter.sent == 1


def test_network_failure_is_logged_not_raised(caplog):
    reporter = CoordinateReporter("http://localhost:3000", session=FakeSession(fail=True))
    with caplog.at_level(logging.WARNING, logger="heat_seeker.services.telemetry"):
        assert not reporter.report(1, make_result())
    assert reporter.failed == 1
    assert "Coordinate report failed" in caplog.text
