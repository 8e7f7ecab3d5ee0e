import asyncio
from typing import Optional

from jobhub.client.connectivity import ConnectivityMonitor
from jobhub.client.resilience import FetchReport, ResilienceController
from jobhub.models.schema import QueryDescriptor


async def load(
    controller: ResilienceController,
    monitor: ConnectivityMonitor,
    query: QueryDescriptor,
    retry: bool = False,
    watch_interval_s: float = 2.0,
) -> Optional[FetchReport]:
    """Settle one UI render's fetch, re-checking connectivity while it is pending."""
    if query == controller.query and not retry:
        before = controller.last_report
        # An offline -> online transition re-fetches the same query through the controller listener.
        await monitor.check()
        if controller.last_report is not before:
            return controller.last_report

    watcher = asyncio.ensure_future(monitor.watch(watch_interval_s))
    try:
        if retry and controller.query == query:
            return await controller.retry()
        return await controller.fetch(query)
    finally:
        watcher.cancel()
