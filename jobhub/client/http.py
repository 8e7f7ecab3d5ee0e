import logging
from typing import Dict, Optional

import httpx

from jobhub.client.resilience import classify_failure
from jobhub.jobs.normalize import normalize_record, parse_int
from jobhub.models.schema import (
    FailureKind,
    QueryDescriptor,
    RetrievalFailure,
    RetrievalOutcome,
    RetrievalSuccess,
)


logger = logging.getLogger(__name__)

JOBS_PATH = "/api/jobs"


class HttpGateway:
    """Executes queries against the JobHub API over HTTP."""

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout_s
        self._transport = transport
        self._headers = {"Accept": "application/json", **(headers or {})}

    async def execute(self, query: QueryDescriptor) -> RetrievalOutcome:
        params = query.to_params()
        logger.debug("[fetch] GET %s%s params=%s", self.base_url, JOBS_PATH, params)
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers=self._headers,
                follow_redirects=True,
            ) as client:
                resp = await client.get(JOBS_PATH, params=params)
                resp.raise_for_status()
                payload = resp.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("[fetch] %s returned HTTP %d", e.request.url, status)
            return RetrievalFailure(
                kind=FailureKind.SERVER_ERROR,
                message=f"Server responded with HTTP {status}",
                status_code=status,
            )
        except (httpx.HTTPError, ValueError) as e:
            kind = classify_failure(e)
            logger.warning("[fetch] Request failed (%s): %s", kind.value, e)
            return RetrievalFailure(kind=kind, message=str(e) or e.__class__.__name__)

        items = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            logger.warning("[fetch] Response body has no 'data' list")
            return RetrievalFailure(kind=FailureKind.UNKNOWN, message="Malformed response from server")

        records = [normalize_record(item) for item in items]
        total = parse_int(payload.get("total"))
        if total is None or total < 0:
            total = len(records)
        return RetrievalSuccess(records=records, total=total)
