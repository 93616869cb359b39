import time

from doubles import StubStore

from health import HEALTHY, UNHEALTHY, Pingable, check_readiness


class Pong:
    def ping(self):
        return True


class Down:
    def ping(self):
        raise ConnectionError("down")


def test_backing_services_are_pingable(context):
    assert isinstance(context.store, Pingable)
    assert isinstance(context.cache, Pingable)


def test_all_healthy():
    report = check_readiness({"database": Pong(), "redis": Pong()}, time.monotonic())

    assert report.healthy
    assert report.to_dict()["message"] == "OK"
    assert report.services == {"database": HEALTHY, "redis": HEALTHY}
    assert report.uptime >= 0


def test_any_failure_degrades_readiness():
    report = check_readiness({"database": StubStore(fail_read=True), "redis": Pong()}, time.monotonic())

    assert not report.healthy
    assert report.message == "Service unavailable"
    assert report.services == {"database": UNHEALTHY, "redis": HEALTHY}


def test_every_dependency_is_checked_after_a_failure():
    report = check_readiness({"database": Down(), "redis": Down()}, time.monotonic())

    assert report.services == {"database": UNHEALTHY, "redis": UNHEALTHY}


def test_report_timestamp_is_epoch_millis():
    before = int(time.time() * 1000)
    report = check_readiness({}, time.monotonic())

    assert report.timestamp >= before
    assert report.healthy
