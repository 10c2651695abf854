"""
Application discovery source.

Produces the Applications to audit from the management service, either a
single one by id or a throttled, time-bounded listing.
"""

import logging
from typing import AsyncIterator

from apim_quality.core.models import Application, ApplicationFilter
from apim_quality.core.models.audit_settings import DEFAULT_DELAY_PERIOD, DEFAULT_LIST_TIMEOUT

logger = logging.getLogger(__name__)


class ApplicationSource:
    """
    Discovery stream of Applications.

    Single-identifier mode fetches one Application without throttling.
    Listing mode emits Applications in the service order, spaced by
    `delay_period` milliseconds, and fails with DiscoveryTimeoutError once
    `timeout` milliseconds have elapsed.
    """

    def __init__(
        self,
        management_api,
        filter_by_id: str | None = None,
        filter_by_name: str | None = None,
        delay_period: float = DEFAULT_DELAY_PERIOD,
        timeout: float = DEFAULT_LIST_TIMEOUT,
    ):
        """
        Initialize Application source.

        Args:
            management_api: Logged-in management service client
            filter_by_id: Application id (single-identifier mode)
            filter_by_name: Case-insensitive regex on names (listing mode)
            delay_period: Delay between two emitted Applications, in milliseconds
            timeout: Overall bound of the listing, in milliseconds
        """
        if delay_period < 0:
            raise ValueError(f"delay_period must be >= 0, got {delay_period}")
        if timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {timeout}")

        self.management_api = management_api
        self.filter_by_id = filter_by_id
        self.application_filter = ApplicationFilter(by_name=filter_by_name)
        self.delay_period = delay_period
        self.timeout = timeout

        if filter_by_id:
            logger.info(f"Initialized ApplicationSource for Application {filter_by_id}")
        else:
            logger.info(
                f"Initialized ApplicationSource (name filter: {filter_by_name!r}, "
                f"delay: {delay_period} ms, timeout: {timeout} ms)"
            )

    async def stream(self) -> AsyncIterator[Application]:
        """
        Yield the discovered Applications.

        Raises:
            ApplicationNotFoundError: In single-identifier mode, if the id does not resolve
            DiscoveryTimeoutError: In listing mode, once the timeout is exceeded
        """
        if self.filter_by_id:
            yield await self.management_api.get_application(self.filter_by_id)
            return

        applications = self.management_api.list_applications(
            self.application_filter,
            self.delay_period,
            self.timeout,
        )
        try:
            async for application in applications:
                yield application
        finally:
            aclose = getattr(applications, "aclose", None)
            if aclose is not None:
                await aclose()
