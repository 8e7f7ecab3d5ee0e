import asyncio

from jobhub.client.connectivity import ConnectivityMonitor
from jobhub.client.loader import load
from jobhub.client.resilience import FetchState, ResilienceController
from jobhub.jobs.query import build_query
from jobhub.models.schema import FailureKind, RetrievalFailure, RetrievalSuccess


class LocationGateway:
    """Refuses the first `failures` requests and records the location of every request."""

    def __init__(self, failures=0):
        self.failures = failures
        self.calls = []

    async def execute(self, query):
        self.calls.append(query.location)
        if len(self.calls) <= self.failures:
            return RetrievalFailure(kind=FailureKind.CONNECT_FAILED, message="refused")
        return RetrievalSuccess(records=[], total=len(self.calls))


def _offline_give_up(gateway, online):
    monitor = ConnectivityMonitor(reachable=lambda: online["value"])
    controller = ResilienceController(gateway, max_retries=0, connectivity=monitor)
    monitor.add_listener(controller.on_connectivity_restored)
    return controller, monitor


def test_unchanged_query_is_served_by_the_restore_refetch():
    online = {"value": False}
    gateway = LocationGateway(failures=1)
    controller, monitor = _offline_give_up(gateway, online)
    query = build_query(location_text="Berlin")

    async def scenario():
        first = await load(controller, monitor, query)
        assert first.state == FetchState.GIVEN_UP
        online["value"] = True
        return await load(controller, monitor, query)

    report = asyncio.run(scenario())
    assert report.state == FetchState.SUCCESS
    assert gateway.calls == ["Berlin", "Berlin"]


def test_changed_query_skips_the_restore_refetch():
    online = {"value": False}
    gateway = LocationGateway(failures=1)
    controller, monitor = _offline_give_up(gateway, online)

    async def scenario():
        await load(controller, monitor, build_query(location_text="Berlin"))
        online["value"] = True
        return await load(controller, monitor, build_query(location_text="Remote"), watch_interval_s=60)

    report = asyncio.run(scenario())
    assert report.state == FetchState.SUCCESS
    assert report.query.location == "Remote"
    assert gateway.calls == ["Berlin", "Remote"]


def test_restore_noticed_while_backing_off_retries_immediately():
    online = {"value": False}
    gateway = LocationGateway(failures=2)
    monitor = ConnectivityMonitor(reachable=lambda: online["value"])

    async def stuck_sleep(delay):
        if delay:
            await asyncio.Event().wait()

    controller = ResilienceController(gateway, connectivity=monitor, sleep=stuck_sleep)
    monitor.add_listener(controller.on_connectivity_restored)

    async def scenario():
        task = asyncio.ensure_future(load(controller, monitor, build_query(), watch_interval_s=0.01))
        while controller.state != FetchState.RETRYING or controller.retry_count < 2:
            await asyncio.sleep(0)
        online["value"] = True
        return await asyncio.wait_for(task, timeout=2)

    report = asyncio.run(scenario())
    assert report.state == FetchState.SUCCESS
    assert len(gateway.calls) == 3
