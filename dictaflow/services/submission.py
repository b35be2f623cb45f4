"""Submission client that sends finalized dictation for report generation."""

import asyncio
import logging
from typing import Callable, Optional, Set

import aiohttp

from ..errors import SubmissionError

logger = logging.getLogger(__name__)


class DictationSubmitter:
    """Posts finalized dictation text to the report generation endpoint."""

    def __init__(self,
                 url: str,
                 template_content: str = "",
                 headers: Optional[dict] = None,
                 timeout_seconds: float = 60.0,
                 on_generated: Optional[Callable[[str], None]] = None,
                 on_failed: Optional[Callable[[str], None]] = None):
        """Initialize the submitter.

        Args:
            url: Generation endpoint (POST, JSON body)
            template_content: Report template sent along with the dictation
            headers: Extra request headers, e.g. credentials
            timeout_seconds: Total request timeout
            on_generated: Receives generated content from scheduled submissions
            on_failed: Receives the dictation text of a scheduled submission that failed
        """
        self.url = url
        self.template_content = template_content
        self.headers = headers or {}
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.on_generated = on_generated
        self.on_failed = on_failed
        self._pending: Set[asyncio.Task] = set()

        logger.info(f"DictationSubmitter initialized with url: {url}")

    async def submit(self, dictation_text: str) -> str:
        """Send dictation text and return the generated content.

        Returns:
            ``htmlContent`` or ``content`` from a JSON response, or the
            response body itself when it is a plain string

        Raises:
            SubmissionError: Request failed or returned a non-200 status
        """
        data = {
            "dictationText": dictation_text,
            "templateContent": self.template_content,
        }

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.url, headers=self.headers, json=data) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise SubmissionError(
                            f"Generation API error: {response.status} - {error_text}",
                            {"status": response.status},
                        )
                    if response.content_type == "application/json":
                        result = await response.json()
                    else:
                        result = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SubmissionError(f"Generation request failed: {e}") from e

        generated = self._extract_generated(result)
        logger.info(f"Received generated content ({len(generated)} chars)")
        return generated

    @staticmethod
    def _extract_generated(result) -> str:
        if isinstance(result, dict):
            generated = result.get("htmlContent")
            if generated is None:
                generated = result.get("content")
            return generated if isinstance(generated, str) else ""
        if isinstance(result, str):
            return result
        return ""

    def get_callback(self) -> Callable[[str], None]:
        """Adapt submit() to a synchronous on_submit hook.

        Must be called from the event loop thread.
        """
        return self._schedule

    async def wait_pending(self) -> None:
        """Wait for scheduled submissions to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def _schedule(self, text: str) -> None:
        task = asyncio.get_running_loop().create_task(self._submit_and_notify(text))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _submit_and_notify(self, dictation_text: str) -> None:
        try:
            generated = await self.submit(dictation_text)
        except SubmissionError as e:
            logger.error(f"Dictation submission failed: {e}")
            if self.on_failed is not None:
                self.on_failed(dictation_text)
            return
        if generated.strip() and self.on_generated is not None:
            self.on_generated(generated)
