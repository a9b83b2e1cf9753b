"""
Gemini chat model adapter.

Turns LangChain's `astream()` into a stream of typed results
(GenerationChunk / GenerationEnd / GenerationError) that stops as soon as a
cancellation event fires, and bounds the whole call by a deadline. Waiting
on the next model chunk races against the cancellation event, so a stop
request interrupts a call that is blocked on the network.

Dependencies: langchain_core, langchain_google_genai, classroom_rag.configs
System role: Streaming text generation
"""

import asyncio
import logging
import re
from collections.abc import AsyncIterator, Sequence
from typing import Any

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from classroom_rag.configs import get_settings
from classroom_rag.core.exceptions import GenerationErrorKind, GenerationFailedError
from classroom_rag.models.generation import GenerationChunk, GenerationEnd, GenerationError, GenerationResult

logger = logging.getLogger(__name__)

# Status codes match only as whole numbers ("4290 tokens" is not a 429)
QUOTA_PATTERN = re.compile(r"quota|resource[_ ]exhausted|rate limit|\b429\b")
AUTH_PATTERN = re.compile(r"api[_ ]key|unauthenticated|permission_denied|\b40[13]\b")


def classify_generation_error(exc: BaseException) -> GenerationErrorKind:
    """
    Map a chat model exception to a failure kind.

    Provider SDKs expose status in different attributes, so this inspects
    `status_code`, `code`, `response.status_code` and the message text.
    """
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return GenerationErrorKind.TIMEOUT

    status = (
        getattr(exc, "status_code", None)
        or getattr(exc, "code", None)
        or getattr(getattr(exc, "response", None), "status_code", None)
    )
    text = str(exc).lower()

    if status == 429 or QUOTA_PATTERN.search(text):
        return GenerationErrorKind.QUOTA
    if status in (401, 403) or AUTH_PATTERN.search(text):
        return GenerationErrorKind.AUTH
    return GenerationErrorKind.UNKNOWN


def content_to_text(content: Any) -> str:
    """Flatten chunk content (str, or list of str / {'text': ...} parts) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            item if isinstance(item, str) else (item.get("text", "") if isinstance(item, dict) else str(item))
            for item in content
        )
    return str(content) if content else ""


class StreamingGenerator:
    """
    Cancellable, deadline-bounded wrapper around a LangChain chat model.

    Attributes:
        model: Chat model ID
        temperature: Sampling temperature
        max_output_tokens: Token limit for one answer
        timeout_seconds: Default upper bound on one call
    """

    def __init__(
        self,
        chat_model: BaseChatModel | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        config = get_settings().generation
        self._chat_model = chat_model
        self.model = model or config.model
        self.temperature = config.temperature if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or config.max_output_tokens
        self.timeout_seconds = timeout_seconds or config.timeout_seconds

    @property
    def chat_model(self) -> BaseChatModel:
        if self._chat_model is None:
            self._chat_model = ChatGoogleGenerativeAI(
                model=self.model,
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
                timeout=self.timeout_seconds,
            )
            logger.info(
                f"{__name__}:chat_model - Initialized Gemini chat model",
                extra={"model": self.model, "max_output_tokens": self.max_output_tokens},
            )
        return self._chat_model

    async def stream(
        self,
        messages: Sequence[BaseMessage],
        cancel_event: asyncio.Event,
        timeout: float | None = None,
    ) -> AsyncIterator[GenerationResult]:
        """
        Stream an answer as typed results.

        The sequence ends with exactly one GenerationEnd or GenerationError,
        or ends without either when `cancel_event` fires.

        Args:
            messages: Prompt messages
            cancel_event: Set by the session manager to stop generation
            timeout: Deadline for the whole call (default: timeout_seconds)

        Yields:
            GenerationResult: Chunk, End or Error
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + (self.timeout_seconds if timeout is None else timeout)

        iterator = self.chat_model.astream(list(messages)).__aiter__()
        cancel_waiter = asyncio.ensure_future(cancel_event.wait())
        next_unit: asyncio.Future | None = None
        try:
            while not cancel_event.is_set():
                remaining = deadline - loop.time()
                if remaining <= 0:
                    yield GenerationError(kind=GenerationErrorKind.TIMEOUT, detail="Generation deadline exceeded")
                    return

                next_unit = asyncio.ensure_future(iterator.__anext__())
                done, _ = await asyncio.wait(
                    {next_unit, cancel_waiter},
                    timeout=remaining,
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if next_unit not in done:
                    # Cancelled or timed out while the model call is pending
                    next_unit.cancel()
                    await asyncio.gather(next_unit, return_exceptions=True)
                    next_unit = None
                    if cancel_event.is_set():
                        return
                    yield GenerationError(kind=GenerationErrorKind.TIMEOUT, detail="Generation deadline exceeded")
                    return

                unit, next_unit = next_unit, None
                try:
                    chunk = unit.result()
                except StopAsyncIteration:
                    yield GenerationEnd()
                    return
                except Exception as e:
                    kind = classify_generation_error(e)
                    logger.warning(
                        f"{__name__}:stream - Model call failed",
                        extra={"kind": kind.value, "error": f"{type(e).__name__}: {e}"},
                    )
                    yield GenerationError(kind=kind, detail=str(e)[:500])
                    return

                text = content_to_text(getattr(chunk, "content", chunk))
                if text:
                    yield GenerationChunk(text=text)
        finally:
            cancel_waiter.cancel()
            if next_unit is not None:
                next_unit.cancel()
                await asyncio.gather(next_unit, return_exceptions=True)
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                try:
                    await aclose()
                except Exception as e:
                    logger.debug(f"{__name__}:stream - Closing model stream failed: {e}")

    async def complete(self, messages: Sequence[BaseMessage]) -> str:
        """
        Non-streaming call returning the full reply text.

        Raises:
            GenerationFailedError: If the call fails or exceeds timeout_seconds
        """
        try:
            response = await asyncio.wait_for(
                self.chat_model.ainvoke(list(messages)),
                timeout=self.timeout_seconds,
            )
        except Exception as e:
            kind = classify_generation_error(e)
            raise GenerationFailedError(
                "Chat model call failed",
                kind=kind,
                details={"error": f"{type(e).__name__}: {e}"},
            ) from e
        return content_to_text(response.content).strip()
