"""
Management service client using httpx

This module wraps the API-management REST API: authentication,
single Application lookup and throttled, time-bounded Application listing.
"""
import logging
import os
from typing import Any, AsyncIterator

import httpx

from apim_quality.core.errors import ApplicationNotFoundError, AuthenticationError
from apim_quality.core.models import Application, ApplicationFilter
from apim_quality.streaming.sources.throttling import throttle, with_deadline

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


class ManagementApi:
    """
    Asynchronous client of the management service.

    Usage:
        async with ManagementApi(url, username, password) as api:
            await api.login()
            async for application in api.list_applications(ApplicationFilter(), 200, 30000):
                ...
    """

    def __init__(
        self,
        base_url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 30.0,
        page_size: int = DEFAULT_PAGE_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the management service client

        Args:
            base_url: Management API base URL (defaults to env var APIM_URL)
            username: Login user (defaults to env var APIM_USERNAME)
            password: Login password (defaults to env var APIM_PASSWORD)
            timeout: HTTP request timeout in seconds
            page_size: Number of Applications requested per listing page
            transport: Optional httpx transport (tests, proxies)
        """
        self.base_url = base_url or os.getenv("APIM_URL", "http://localhost:8083/management")
        self.username = username or os.getenv("APIM_USERNAME", "admin")
        self.password = password or os.getenv("APIM_PASSWORD")
        self.timeout = timeout
        self.page_size = page_size
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._token: str | None = None

    def open(self) -> None:
        """Create the underlying HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )

    async def close(self) -> None:
        """Close the underlying HTTP client"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ManagementApi":
        self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self.open()
        return self._client

    @property
    def authenticated(self) -> bool:
        return self._token is not None

    async def login(self, username: str | None = None, password: str | None = None) -> str:
        """
        Open a session on the management service.

        Args:
            username: Overrides the configured user
            password: Overrides the configured password

        Returns:
            Session token

        Raises:
            AuthenticationError: If the credentials are rejected
        """
        username = username or self.username
        password = password or self.password
        if not password:
            raise AuthenticationError(username)

        response = await self.client.post("/user/login", auth=httpx.BasicAuth(username, password))
        if response.status_code in (401, 403):
            raise AuthenticationError(username, response.status_code)
        response.raise_for_status()

        token = response.json().get("token")
        if not token:
            raise AuthenticationError(username, response.status_code)

        self._token = token
        self.client.headers["Authorization"] = f"Bearer {token}"
        logger.info(f"Logged in to {self.base_url} as {username}")
        return token

    async def get_application(self, application_id: str) -> Application:
        """
        Get one Application by id.

        Raises:
            ApplicationNotFoundError: If the id does not resolve
        """
        response = await self.client.get(f"/applications/{application_id}")
        if response.status_code == 404:
            raise ApplicationNotFoundError(application_id)
        response.raise_for_status()
        return Application.model_validate(response.json())

    async def iter_applications(self, application_filter: ApplicationFilter | None = None) -> AsyncIterator[Application]:
        """
        Page through the Applications, in the service listing order.

        Accepts both a bare JSON list (a single page) and a paginated envelope
        {"data": [...], "pagination": {"page": n, "pageCount": m}}.
        """
        application_filter = application_filter or ApplicationFilter()
        page = 1

        while True:
            response = await self.client.get("/applications", params={"page": page, "size": self.page_size})
            response.raise_for_status()
            items, page_count = self._parse_page(response.json())
            logger.debug(f"Fetched Application page {page} ({len(items)} item(s))")

            for item in items:
                application = Application.model_validate(item)
                if application_filter.matches(application):
                    yield application

            if page_count is None or page >= page_count or not items:
                return
            page += 1

    def list_applications(
        self,
        application_filter: ApplicationFilter | None,
        delay_period: float,
        timeout: float,
    ) -> AsyncIterator[Application]:
        """
        List Applications, throttled and bounded in time.

        Args:
            application_filter: Filter applied to every listed Application
            delay_period: Delay between two emitted Applications, in milliseconds
            timeout: Overall bound of the listing, in milliseconds

        Returns:
            Async iterator of Applications, raising DiscoveryTimeoutError when
            the bound is exceeded
        """
        return with_deadline(
            throttle(self.iter_applications(application_filter), delay_period / 1000),
            timeout / 1000,
        )

    @staticmethod
    def _parse_page(payload: Any) -> tuple[list[dict[str, Any]], int | None]:
        if isinstance(payload, list):
            return payload, None
        if isinstance(payload, dict):
            pagination = payload.get("pagination") or {}
            return payload.get("data") or [], pagination.get("pageCount")
        raise ValueError(f"Unexpected Application listing payload: {type(payload).__name__}")
