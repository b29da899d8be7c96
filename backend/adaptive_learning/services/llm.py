import logging
import time
from typing import Dict, List, Optional, Type, TypeVar

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI
from pydantic import BaseModel, ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from adaptive_learning.errors import SchemaViolation
from adaptive_learning.prompts import build_messages

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)


class LLMService:
    """Thin wrapper around OpenAI structured outputs.

    Every call passes a pydantic model as ``response_format``; the parsed
    payload is either an instance of that model or a ``SchemaViolation``.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o",
        temperature: float = 0,
        max_attempts: int = 1,
    ):
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_attempts = max(1, max_attempts)

    async def _make_completion(
        self, messages: List[Dict[str, str]], response_format: Type[ResponseT]
    ) -> ResponseT:
        """Make an API call to OpenAI, retrying transport errors if configured."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=4, max=10),
            retry=retry_if_exception_type(
                (APIConnectionError, APITimeoutError, APIStatusError)
            ),
            reraise=True,
        ):
            with attempt:
                try:
                    completion = await self.client.beta.chat.completions.parse(
                        model=self.model,
                        temperature=self.temperature,
                        messages=messages,
                        response_format=response_format,
                    )
                except ValidationError as e:
                    raise SchemaViolation(
                        f"{response_format.__name__} response failed validation: {e}"
                    ) from e

        message = completion.choices[0].message
        if message.parsed is None:
            raise SchemaViolation(
                f"No {response_format.__name__} in response"
                + (f" (refusal: {message.refusal})" if message.refusal else "")
            )
        if not isinstance(message.parsed, response_format):
            # Revalidate payloads that did not come back as the requested model
            try:
                return response_format.model_validate(message.parsed)
            except ValidationError as e:
                raise SchemaViolation(
                    f"{response_format.__name__} response failed validation: {e}"
                ) from e
        return message.parsed

    async def complete(
        self,
        group: str,
        name: str,
        response_format: Type[ResponseT],
        /,
        **values,
    ) -> ResponseT:
        """Format the named prompt pair and parse the reply into response_format.

        The prompt selectors are positional-only so template values may use
        any keyword, including ``name``.
        """
        messages = build_messages(group, name, **values)

        start_time = time.time()
        result = await self._make_completion(messages, response_format)
        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(f"{group}/{name} completed in {duration_ms}ms")

        return result

    async def close(self):
        await self.client.close()
