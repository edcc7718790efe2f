#!/usr/bin/python
"""
Wait for an NVCF deployment to finish rolling out.
"""

import threading
import time
import typing as t

from .nvcf_common import NVCFModuleBase
from .nvcf_errors import DeploymentFailedError, DeploymentTimeoutError
from .nvcf_models import Deployment, FunctionStatus

DEFAULT_POLL_INTERVAL_SECONDS = 60


class DeploymentWaiter(NVCFModuleBase):
    """Poll a deployment until it is ACTIVE, FAILED or the deadline passes.

    The pause between polls waits on ``cancel_event`` so that setting the
    event, or reaching the deadline, ends the wait immediately instead of
    sleeping out the full interval.
    """

    def __init__(
        self,
        module: t.Any,
        client: t.Any,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        clock: t.Callable[[], float] = time.monotonic,
        cancel_event: threading.Event | None = None,
    ) -> None:
        super().__init__(module)
        self.client = client
        self.poll_interval = poll_interval
        self.clock = clock
        self.cancel_event = cancel_event or threading.Event()

    def deadline_after(self, timeout_seconds: float) -> float:
        """Absolute deadline ``timeout_seconds`` from now."""
        return self.clock() + timeout_seconds

    def wait(self, function_id: str, version_id: str, deadline: float) -> Deployment:
        """Block until the deployment of ``version_id`` is ACTIVE."""
        while True:
            deployment = self.client.read_deployment(function_id, version_id)
            status = deployment.function_status if deployment else None

            if status == FunctionStatus.ACTIVE.value:
                return deployment
            if status != FunctionStatus.DEPLOYING.value:
                raise DeploymentFailedError(status)

            remaining = deadline - self.clock()
            if remaining <= 0:
                raise DeploymentTimeoutError()

            self.debug(
                f"Deployment of {function_id}/{version_id} is {status}, "
                f"checking again in {min(self.poll_interval, remaining):.0f}s"
            )
            if self.cancel_event.wait(min(self.poll_interval, remaining)):
                raise DeploymentTimeoutError("deployment wait cancelled")
            if self.clock() >= deadline:
                raise DeploymentTimeoutError()
