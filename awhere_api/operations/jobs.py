"""Batch job status and results."""

import logging
import time
from typing import Union

from awhere_api.endpoints.descriptor import EndpointDescriptor, ResourceFamily
from awhere_api.exceptions import JobTimeoutError
from awhere_api.session import AWhereSession

logger = logging.getLogger(__name__)

DONE_STATUS = "Done"


def get_job(
    session: AWhereSession,
    job_id: Union[int, str],
    wait: bool = True,
    retry_secs: float = 60,
    num_retries: int = 60,
) -> dict:
    """Fetch a batch job, polling until it is done.

    Args:
        session: Authenticated session
        job_id: Id returned when the job was queued
        wait: Poll until ``jobStatus`` is ``Done``; otherwise return the
            first status seen
        retry_secs: Seconds between polls
        num_retries: Polls allowed after the first before giving up

    Returns:
        The job document; results are included once the job is done

    Raises:
        JobTimeoutError: If the job is not done after ``num_retries`` polls
    """
    descriptor = EndpointDescriptor(ResourceFamily.JOBS, job_id=job_id)
    retries = 0

    while True:
        document = session.request("GET", descriptor)
        status = document.get("jobStatus") if isinstance(document, dict) else None
        if not wait or status == DONE_STATUS:
            return document
        if retries >= num_retries:
            raise JobTimeoutError(job_id, retries)

        logger.info(
            f"Job {job_id} status: {status}, retrying",
            extra={"job_id": job_id, "job_status": status, "retry": retries + 1},
        )
        time.sleep(retry_secs)
        retries += 1
