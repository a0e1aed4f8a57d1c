"""OpenAI SDK wrapper for the three generation calls"""

import base64
import logging
from typing import Any, Dict, List, Optional, Tuple
import httpx
import openai
from openai import AsyncOpenAI
from pydantic import ValidationError
from pagegen_api.core.config import Settings, settings as default_settings
from pagegen_api.core.spec_extractor import SpecParseError, extract_json_object
from pagegen_api.models.errors import ApplicationError, ErrorCode
from pagegen_api.models.schemas import GeneratedCodeResult, GeneratedResult, GeneratedSpec

logger = logging.getLogger(__name__)

SPEC_FROM_IMAGE_PROMPT = (
    "You are a product landing page copy and structure generator. Analyze the uploaded "
    "screenshot and produce a concise JSON spec with: title, hero {headline, subheadline, "
    "ctaText}, and 2-4 sections [{title, body}]. Keep text succinct, credible, and "
    "user-focused. Return only JSON."
)

SPEC_FROM_PROMPT_PROMPT = (
    "You are a product landing page copy and structure generator. Produce only JSON with "
    "the following shape: { title, hero: { headline, subheadline, ctaText }, sections: "
    "[{ title, body }] }. Keep copy crisp, credible, and user-focused."
)

FULL_PAGE_PROMPT = (
    "You generate production-ready web pages. Return a single JSON object with keys: steps "
    "(array of short step descriptions), html (a complete HTML document with inline Tailwind "
    "classes or minimal semantic HTML), css (optional), js (optional). Do not explain outside "
    "of JSON. If css or js are provided, they must be plain text strings."
)

DEFAULT_IMAGE_MIME = "image/png"


class GenerationClient:
    """
    Wrapper around the completion API.

    Every operation is a single round trip. Missing credentials, HTTP failures
    and unparseable output all surface as ApplicationError; nothing is retried.
    """

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or default_settings
        # Injected in tests to serve screenshots without network access
        self._transport = transport

    def has_credentials(self) -> bool:
        """Whether the API key is configured (read on every call)"""
        return bool(self.settings.openai_api_key)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def spec_from_image_url(self, url: str) -> GeneratedResult:
        """Draft a spec from a screenshot; a failed download degrades to describing the URL"""
        self._require_api_key()

        image_part, fetch_error = await self._image_part(url)
        parts: List[Dict[str, Any]] = [{"type": "text", "text": SPEC_FROM_IMAGE_PROMPT}]
        if image_part is not None:
            parts.append(image_part)
        else:
            parts.append({"type": "text", "text": f"Image URL: {url}"})

        raw_text = await self._complete([{"role": "user", "content": parts}])
        spec = self._parse_spec(raw_text)
        return GeneratedResult(spec=spec, raw_text=raw_text, image_fetch_error=fetch_error)

    async def spec_from_prompt(self, prompt: str) -> GeneratedResult:
        """Draft a spec from a free-form prompt"""
        self._require_api_key()
        raw_text = await self._complete([
            {"role": "system", "content": SPEC_FROM_PROMPT_PROMPT},
            {"role": "user", "content": f"User request: {prompt}"},
        ])
        spec = self._parse_spec(raw_text)
        return GeneratedResult(spec=spec, raw_text=raw_text)

    async def full_page_from_prompt(self, prompt: str) -> GeneratedCodeResult:
        """Draft a complete page (html plus optional css/js) from a free-form prompt"""
        self._require_api_key()
        raw_text = await self._complete([
            {"role": "system", "content": FULL_PAGE_PROMPT},
            {"role": "user", "content": f"User request: {prompt}"},
        ])
        obj = self._parse_object(raw_text)

        steps = obj.get("steps")
        return GeneratedCodeResult(
            steps=[str(step) for step in steps] if isinstance(steps, list) else [],
            html=str(obj.get("html") or ""),
            css=str(obj["css"]) if obj.get("css") else None,
            js=str(obj["js"]) if obj.get("js") else None,
            raw_text=raw_text,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_api_key(self) -> str:
        api_key = self.settings.openai_api_key
        if not api_key:
            raise ApplicationError(
                code=ErrorCode.CONFIGURATION_ERROR,
                message="OPENAI_API_KEY is not set",
                hint="Set OPENAI_API_KEY in the environment or .env file."
            )
        return api_key

    async def _complete(self, messages: List[Dict[str, Any]]) -> str:
        """Send one chat completion request and return the concatenated text"""
        api_key = self._require_api_key()
        model = self.settings.openai_model
        client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.settings.openai_base_url or None,
            timeout=self.settings.openai_timeout_seconds,
            max_retries=0,
        )

        try:
            logger.info(f"[LLM] Calling {model}")
            response = await client.chat.completions.create(model=model, messages=messages)
        except openai.APIStatusError as e:
            raise ApplicationError(
                code=ErrorCode.GENERATION_FAILED,
                message=f"OpenAI HTTP {e.status_code}: {e.message}",
                retryable=True
            ) from e
        except openai.OpenAIError as e:
            raise ApplicationError(
                code=ErrorCode.GENERATION_FAILED,
                message=f"OpenAI API call failed: {e}",
                retryable=True
            ) from e
        finally:
            await client.close()

        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""
        usage = response.usage.total_tokens if response.usage else "?"
        logger.info(f"[LLM] Response received ({usage} tokens, {len(text)} chars)")
        return text

    def _parse_object(self, raw_text: str) -> Dict[str, Any]:
        try:
            return extract_json_object(raw_text)
        except SpecParseError as e:
            logger.warning(f"[LLM] Unparseable model output ({len(raw_text)} chars): {e}")
            raise ApplicationError(
                code=ErrorCode.SPEC_PARSE_ERROR,
                message=str(e),
                retryable=True
            ) from e

    def _parse_spec(self, raw_text: str) -> GeneratedSpec:
        obj = self._parse_object(raw_text)
        try:
            return GeneratedSpec.model_validate(obj)
        except ValidationError as e:
            raise ApplicationError(
                code=ErrorCode.SPEC_PARSE_ERROR,
                message=f"Model output does not match the page spec shape ({e.error_count()} errors)",
                retryable=True
            ) from e

    async def _image_part(self, url: str) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        """Download the screenshot as an inline image part. Returns (part, None) or (None, reason)."""
        try:
            image_bytes, mime_type = await self._fetch_image(url)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            reason = f"{type(e).__name__}: {e}"
            logger.warning(f"[LLM] Screenshot download failed for {url}: {reason}")
            return None, reason

        encoded = base64.b64encode(image_bytes).decode("ascii")
        logger.info(f"[LLM] Attached screenshot ({len(image_bytes)} bytes, {mime_type})")
        return {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}}, None

    async def _fetch_image(self, url: str) -> Tuple[bytes, str]:
        limit = self.settings.max_image_bytes
        async with httpx.AsyncClient(
            timeout=self.settings.image_fetch_timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                mime_type = response.headers.get("content-type", DEFAULT_IMAGE_MIME).split(";")[0].strip()
                if not mime_type.startswith("image/"):
                    raise ValueError(f"not an image (content-type {mime_type})")

                chunks = []
                size = 0
                async for chunk in response.aiter_bytes():
                    size += len(chunk)
                    if size > limit:
                        raise ValueError(f"image larger than {limit} bytes")
                    chunks.append(chunk)
        return b"".join(chunks), mime_type


# Global client instance
generation_client = GenerationClient()
