"""
HTTP client for the reconciliation API.

Implements the import, automatic-match and confirm calls over httpx. Errors
are mapped to the failure type of the call that raised them; nothing is
retried automatically.
"""

from pathlib import Path
from typing import Any, Optional, Sequence
import logging
import os

import httpx
from pydantic import ValidationError

from ..config import ApiConfig
from ..models.confirmation import ConfirmationPayload
from ..models.statement import MatchResponse, Operation, ReconciliationResult, Statement
from ..utils.exceptions import (
    ImportFailure,
    MatchFailure,
    RemoteCallError,
    SubmissionFailure,
)
from .base import TokenProvider

logger = logging.getLogger(__name__)


def env_token_provider(variable: str) -> TokenProvider:
    """Token provider reading a bearer token from an environment variable."""

    def _provider() -> Optional[str]:
        return os.environ.get(variable) or None

    return _provider


async def _log_request(request: httpx.Request) -> None:
    logger.debug(f"--> {request.method} {request.url}")


async def _log_response(response: httpx.Response) -> None:
    request = response.request
    logger.debug(f"<-- {request.method} {request.url} {response.status_code}")


class ReconciliationApiClient:
    """
    Client for the reconciliation API.

    Handles authentication headers and maps transport and HTTP errors to the
    workflow's failure types.
    """

    def __init__(
        self,
        config: ApiConfig,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            config: API settings
            token_provider: Callable returning the current bearer token
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self.token_provider = token_provider or env_token_provider(config.token_env_var)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
                verify=self.config.verify_ssl,
                transport=self._transport,
                event_hooks={"request": [_log_request], "response": [_log_response]},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "ReconciliationApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _url(self, endpoint: str) -> str:
        return self.config.path_prefix.rstrip("/") + "/" + endpoint.lstrip("/")

    def _auth_headers(self) -> dict[str, str]:
        token = self.token_provider()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def _request(
        self,
        failure: type[RemoteCallError],
        method: str,
        endpoint: str,
        **kwargs,
    ) -> Any:
        """Make an authenticated request and return the decoded JSON body."""
        client = self._get_client()
        url = self._url(endpoint)

        try:
            response = await client.request(
                method, url, headers=self._auth_headers(), **kwargs
            )
        except httpx.TimeoutException as e:
            raise failure(f"Request timeout: {method} {url}") from e
        except httpx.RequestError as e:
            raise failure(f"Request error: {e}") from e

        if response.status_code == 401:
            raise failure("Authentication failed", status_code=401)

        if response.status_code >= 400:
            try:
                details = response.json()
            except ValueError:
                details = response.text
            raise failure(
                f"API error: {response.status_code}",
                status_code=response.status_code,
                details=details,
            )

        try:
            return response.json()
        except ValueError as e:
            raise failure(
                "Response body is not valid JSON", status_code=response.status_code
            ) from e

    async def import_statement(self, file_path: Path) -> Statement:
        """
        Upload a statement file to the parsing service.

        Args:
            file_path: Path to the statement file

        Returns:
            Parsed statement

        Raises:
            ImportFailure: If the file cannot be read or the call fails
        """
        logger.info(f"Importing statement file: {file_path}")
        try:
            content = file_path.read_bytes()
        except OSError as e:
            raise ImportFailure(f"Cannot read statement file {file_path}: {e}") from e

        data = await self._request(
            ImportFailure,
            "POST",
            self.config.endpoints.import_path,
            files={"file": (file_path.name, content)},
        )
        try:
            statement = Statement.model_validate(data)
        except ValidationError as e:
            raise ImportFailure("Unexpected statement format", details=str(e)) from e

        logger.info(
            f"Imported statement {statement.id} "
            f"({len(statement.operations or [])} operations)"
        )
        return statement

    async def match_operations(
        self, statement_id: str, operations: Sequence[Operation]
    ) -> MatchResponse:
        """
        Ask the matching service to pair operations with ledger transactions.

        Raises:
            MatchFailure: If the call fails or the response is malformed
        """
        logger.info(
            f"Requesting automatic matching for statement {statement_id} "
            f"({len(operations)} operations)"
        )
        body = {
            "statementId": statement_id,
            "operations": [op.to_wire() for op in operations],
        }
        data = await self._request(
            MatchFailure, "POST", self.config.endpoints.match_path, json=body
        )
        try:
            return MatchResponse.model_validate(data)
        except ValidationError as e:
            raise MatchFailure("Unexpected match response format", details=str(e)) from e

    async def confirm(self, payload: ConfirmationPayload) -> ReconciliationResult:
        """
        Submit the final confirmation.

        Raises:
            SubmissionFailure: If the service rejects the confirmation or
                cannot be reached
        """
        data = await self._request(
            SubmissionFailure,
            "POST",
            self.config.endpoints.validate_path,
            json=payload.to_wire(),
        )
        try:
            result = ReconciliationResult.model_validate(data)
        except ValidationError as e:
            raise SubmissionFailure(
                "Unexpected confirmation response format", details=str(e)
            ) from e

        # Echo what was attested when the service leaves it out
        echoed: dict[str, Any] = {}
        if payload.acknowledgement and not result.acknowledgement:
            echoed["acknowledgement"] = True
        if result.notes is None and payload.comments.final:
            echoed["notes"] = payload.comments.final
        if echoed:
            result = result.model_copy(update=echoed)

        logger.info(f"Statement {payload.statement_id} confirmed ({result.status.value})")
        return result
