"""Base inference provider implementing the Template Method pattern.

All providers share the same call algorithm:
    chat() → _call_with_retry() → _call_api()   ← only this differs per provider

Subclasses implement two things only:
  - __init__: set up the transport to the runtime
  - _call_api: make one raw chat call and return the response text

Retry, backoff and error wrapping live here so every provider fails the
same way: a single InferenceError once the retries are exhausted.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3


class InferenceError(Exception):
    """The model runtime could not produce a response."""


class BaseProvider(ABC):
    MAX_RETRIES: int = _MAX_RETRIES

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def chat(self, model: str, messages: list[dict]) -> str:
        """Send a chat conversation to ``model`` and return the reply text."""
        return self._call_with_retry(model, messages)

    def ask(self, model: str, prompt: str) -> str:
        return self.chat(model, [{"role": "user", "content": prompt}])

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, model: str, messages: list[dict]) -> str:
        """Make a single chat call and return the raw text response.

        Should raise on failure; _call_with_retry handles retries and logging.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _call_with_retry(self, model: str, messages: list[dict]) -> str:
        """Retry _call_api up to MAX_RETRIES times with exponential backoff."""
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(model, messages)
            except Exception as e:
                if attempt == self.MAX_RETRIES - 1:
                    logger.error(
                        "%s call failed after %d attempts: %s",
                        self.__class__.__name__,
                        self.MAX_RETRIES,
                        e,
                    )
                    raise InferenceError(f"{self.__class__.__name__}: {e}") from e
                delay = 2**attempt
                logger.warning(
                    "%s error (attempt %d/%d): %s. Retrying in %ds...",
                    self.__class__.__name__,
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)
        raise InferenceError(f"{self.__class__.__name__}: no attempts made")
