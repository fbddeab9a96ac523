"""
Generative backend handle.

One engine per process, loaded lazily behind a lock so at most one load is in
flight. Callers get two distinguishable failures:

  BackendUnavailableError  the engine cannot be created here at all; the handle remembers
                           it and never loads again
  BackendError             a single completion failed; a later call may succeed
"""
import asyncio
import logging
from functools import lru_cache
from typing import Any, Awaitable, Callable, Optional

from .config import GEMINI_API_KEY, GEMINI_MODEL, LLM_MAX_OUTPUT_TOKENS, LLM_TEMPERATURE

logger = logging.getLogger(__name__)

COLD, LOADING, READY, UNAVAILABLE = "cold", "loading", "ready", "unavailable"


class BackendUnavailableError(RuntimeError):
    """The generative runtime cannot be initialised in this environment."""


class BackendError(RuntimeError):
    """A completion call failed; the backend itself may still be usable."""


class GenerativeBackend:
    def __init__(self, load_engine: Callable[[], Awaitable[Any]], name: str = "generative"):
        self._load_engine = load_engine
        self._engine = None
        self._error: Optional[BackendUnavailableError] = None
        self._lock = asyncio.Lock()
        self.name = name
        self.state = COLD
        self.detail = "Not loaded"

    async def warmup(self):
        if self._engine is not None:
            return self._engine
        if self._error is not None:
            raise self._error
        async with self._lock:
            if self._engine is not None:
                return self._engine
            if self._error is not None:
                raise self._error
            self.state, self.detail = LOADING, f"Loading {self.name}"
            try:
                engine = await self._load_engine()
            except Exception as e:
                self.state, self.detail = UNAVAILABLE, str(e) or type(e).__name__
                logger.warning(f"{self.name} backend unavailable: {self.detail}")
                if isinstance(e, BackendUnavailableError):
                    self._error = e
                    raise
                self._error = BackendUnavailableError(self.detail)
                raise self._error from e
            self._engine = engine
            self.state, self.detail = READY, f"Loaded {self.name}"
        return self._engine

    async def run_prompt(self, system_prompt: str, user_prompt: str,
                         json_schema: Optional[str] = None) -> str:
        engine = await self.warmup()
        try:
            return await engine.complete(system_prompt, user_prompt, json_schema)
        except BackendUnavailableError:
            raise
        except Exception as e:
            raise BackendError(f"{self.name} completion failed: {e}") from e


class GeminiEngine:
    def __init__(self, genai_module, model_name: str):
        self._genai = genai_module
        self.model_name = model_name

    async def complete(self, system_prompt: str, user_prompt: str,
                       json_schema: Optional[str] = None) -> str:
        generation_config = {
            "temperature": LLM_TEMPERATURE,
            "max_output_tokens": LLM_MAX_OUTPUT_TOKENS,
        }
        if json_schema:
            generation_config["response_mime_type"] = "application/json"
        model = self._genai.GenerativeModel(
            self.model_name,
            system_instruction=system_prompt,
            generation_config=generation_config,
        )
        resp = await model.generate_content_async(user_prompt)
        return (getattr(resp, "text", None) or "").strip()


async def load_gemini_engine() -> GeminiEngine:
    if not GEMINI_API_KEY:
        raise BackendUnavailableError("No GEMINI_API_KEY found in environment")
    import google.generativeai as genai
    genai.configure(api_key=GEMINI_API_KEY)
    return GeminiEngine(genai, GEMINI_MODEL)


@lru_cache()
def get_backend() -> GenerativeBackend:
    """Process-wide default backend."""
    return GenerativeBackend(load_gemini_engine, name=GEMINI_MODEL)


def unavailable_backend(reason: str) -> GenerativeBackend:
    async def _refuse():
        raise BackendUnavailableError(reason)
    return GenerativeBackend(_refuse, name="disabled")
