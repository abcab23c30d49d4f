"""HTTP text analysis gateway using httpx.

Invokes a hosted analysis function (``POST {base_url}/functions/v1/{name}``)
and maps its JSON answer onto ``AnalysisResult``.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx

from ....core.exceptions import TextAnalysisError
from ..entities.analysis_result import AnalysisResult
from ..entities.protocols import TextAnalysisGateway

logger = logging.getLogger(__name__)


class HttpTextAnalysisGateway(TextAnalysisGateway):
    """HTTP adapter for the text analysis provider."""

    MODEL_NAME = "yachtie-multilingual-v1"

    def __init__(
        self,
        base_url: str,
        function_name: str = "enhanced-multi-ai-processor",
        api_key: Optional[str] = None,
        timeout_seconds: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the gateway.

        Args:
            base_url: Provider base URL
            function_name: Hosted function to invoke
            api_key: Optional bearer token
            timeout_seconds: Per-request timeout
            client: Optional pre-built client (owned by the caller)
        """
        if not base_url:
            raise ValueError("base_url is required")

        self._endpoint = f"{base_url.rstrip('/')}/functions/v1/{function_name}"
        self._api_key = api_key
        self._timeout = timeout_seconds
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self):
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"
            self._client = httpx.AsyncClient(headers=headers, timeout=self._timeout)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def validate(self, text: str, context: str) -> AnalysisResult:
        return await self._invoke({
            "text": text,
            "task": "validate",
            "context": context,
            "options": {"sanitize": True, "checkMalicious": True},
        })

    async def analyze(
        self,
        text: str,
        task: str = "analyze",
        context: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> AnalysisResult:
        body: Dict[str, Any] = {"text": text, "task": task, "options": options or {}}
        if context:
            body["context"] = context
        return await self._invoke(body)

    async def _invoke(self, body: Dict[str, Any]) -> AnalysisResult:
        task = body.get("task", "analyze")
        client = self._ensure_client()
        started = time.perf_counter()

        try:
            response = await client.post(
                self._endpoint,
                json={**body, "multilingual": True},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Text analysis {task} request failed: {e}")
            raise TextAnalysisError(task, e) from e

        elapsed_ms = (time.perf_counter() - started) * 1000

        if response.status_code >= 500:
            error = httpx.HTTPStatusError(
                f"Provider returned {response.status_code}",
                request=response.request,
                response=response,
            )
            raise TextAnalysisError(task, error) from error

        try:
            payload = response.json()
        except ValueError as e:
            raise TextAnalysisError(task, e) from e

        if not isinstance(payload, dict):
            raise TextAnalysisError(task, ValueError("Provider returned a non-object body"))

        if response.status_code >= 400 or payload.get("success") is False or payload.get("error"):
            return AnalysisResult(
                success=False,
                error=str(payload.get("error") or f"HTTP {response.status_code}"),
                processing_time_ms=elapsed_ms,
                model=self.MODEL_NAME,
            )

        result = payload.get("result", payload.get("response"))
        if "keywords" in payload and not isinstance(result, dict):
            result = {"keywords": payload["keywords"], "value": result}

        return AnalysisResult(
            success=True,
            result=result,
            confidence=float(payload.get("confidence", 0.95)),
            language=payload.get("detectedLanguage") or payload.get("language") or "en",
            processing_time_ms=elapsed_ms,
            model=self.MODEL_NAME,
        )
