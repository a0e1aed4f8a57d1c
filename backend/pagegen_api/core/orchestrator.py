"""Generation orchestrator: input → model drafts → stored page → completion event"""

import asyncio
import logging
from enum import Enum
from typing import Dict, Optional, Tuple
from pydantic import AnyUrl, TypeAdapter, ValidationError
from pagegen_api.core.generation_client import GenerationClient, generation_client
from pagegen_api.core.page_store import PageStore, page_store
from pagegen_api.core.progress_channel import ProgressChannel
from pagegen_api.models.schemas import (
    CompleteEvent,
    GeneratedCodeResult,
    GeneratedPage,
    GeneratedResult,
    GeneratedSpec,
    Hero,
    PageHero,
    Section,
)

logger = logging.getLogger(__name__)

_url_adapter = TypeAdapter(AnyUrl)

UNEXPECTED_ERROR_MESSAGE = "Unexpected error"

FALLBACK_SPEC = GeneratedSpec(
    title="Generated Landing Page",
    hero=Hero(
        headline="Grow your audience with clear storytelling",
        subheadline="Turn ideas into a compelling personal brand with simple, effective content systems.",
        cta_text="Get Started",
    ),
    sections=[
        Section(
            title="What you'll get",
            body="A clean hero, clear value props, and a focused call-to-action. Optimized for speed and clarity.",
        ),
        Section(
            title="Why it works",
            body="Less fluff, more signal. Build credibility with social proof and results that speak for themselves.",
        ),
    ],
)


class InputMode(str, Enum):
    """How the raw input is interpreted"""
    IMAGE = "image"
    PROMPT = "prompt"


def classify_input(input_text: str) -> Tuple[InputMode, Optional[str]]:
    """
    Absolute URLs are screenshots, everything else is a prompt.

    Returns the mode and, for screenshots, the normalized URL.
    """
    candidate = input_text.strip()
    try:
        url = _url_adapter.validate_python(candidate)
    except ValidationError:
        return InputMode.PROMPT, None
    return InputMode.IMAGE, str(url)


def preview_url_for(page_id: str) -> str:
    return f"/preview/{page_id}"


class GenerationOrchestrator:
    """
    Runs one generation per call to run(). Holds no per-run state, so a single
    instance serves every request; the only shared state is the page store.
    """

    def __init__(self, client: Optional[GenerationClient] = None, store: Optional[PageStore] = None):
        self.client = client if client is not None else generation_client
        self.store = store if store is not None else page_store

    async def run(self, input_text: str, channel: ProgressChannel) -> Optional[GeneratedPage]:
        """
        Drive the whole pipeline and finish the channel with exactly one terminal event.

        Generation failures fall back to FALLBACK_SPEC; anything else ends the
        run with a generic error event. Returns the stored page, or None on error.
        """
        run_id = channel.run_id
        logger.info(f"[ORCHESTRATOR {run_id}] Run started ({len(input_text)} chars of input)")
        try:
            page = await self._run(input_text, channel)
        except Exception:
            logger.exception(f"[ORCHESTRATOR {run_id}] Unexpected error")
            if not channel.closed:
                channel.fail(UNEXPECTED_ERROR_MESSAGE)
            return None
        finally:
            if not channel.closed:
                # Cancelled mid-run; still honor the one-terminal-event contract
                channel.fail(UNEXPECTED_ERROR_MESSAGE)
        logger.info(f"[ORCHESTRATOR {run_id}] Run complete: page {page.id}")
        return page

    async def _run(self, input_text: str, channel: ProgressChannel) -> GeneratedPage:
        # Step 1: Classify input
        mode, image_url = classify_input(input_text)
        if mode == InputMode.IMAGE:
            await channel.progress("Detected screenshot URL")
        else:
            await channel.progress("Detected free-form prompt")

        # Step 2: Credential notice (diagnostic only, generation is still attempted)
        if not self.client.has_credentials():
            await channel.progress("OPENAI_API_KEY missing - using defaults")

        # Step 3-5: Draft spec (and code for prompts), falling back on failure
        if mode == InputMode.IMAGE:
            await channel.progress("Calling the model to draft the page spec from the screenshot")
        else:
            await channel.progress("Calling the model to draft the page spec and code")
        diagnostics: Dict[str, str] = {}
        result, code = await self._generate(mode, input_text, image_url, diagnostics)

        if result is None:
            await channel.progress("AI failed - using a sensible default")
            result = GeneratedResult(spec=FALLBACK_SPEC, raw_text="")
        else:
            await channel.progress("AI draft ready")
            if result.image_fetch_error:
                diagnostics["imageFetchError"] = result.image_fetch_error
                await channel.progress("Could not download the screenshot - describing it from its URL")

        # Step 6-7: Assemble and store
        await channel.progress("Assembling preview")
        page = self._build_page(result.spec, image_url, code)
        self.store.put(page.id, page)

        # Step 8: Terminal event
        event = CompleteEvent(
            spec=page,
            preview_url=preview_url_for(page.id),
            raw_text=result.raw_text,
            diagnostics=diagnostics or None,
        )
        if mode == InputMode.PROMPT and code is not None:
            event = event.model_copy(update={
                "steps": code.steps,
                "code_html": code.html,
                "code_css": code.css,
                "code_js": code.js,
                "code_raw_text": code.raw_text,
            })
        channel.complete(event)
        return page

    async def _generate(
        self,
        mode: InputMode,
        input_text: str,
        image_url: Optional[str],
        diagnostics: Dict[str, str],
    ) -> Tuple[Optional[GeneratedResult], Optional[GeneratedCodeResult]]:
        """Call the model; failures are recorded in diagnostics and returned as None"""
        if mode == InputMode.IMAGE:
            try:
                return await self.client.spec_from_image_url(image_url), None
            except Exception as e:
                diagnostics["aiError"] = _describe(e)
                logger.warning(f"[ORCHESTRATOR] Spec from screenshot failed: {diagnostics['aiError']}")
                return None, None

        spec_outcome, code_outcome = await asyncio.gather(
            self.client.spec_from_prompt(input_text),
            self.client.full_page_from_prompt(input_text),
            return_exceptions=True,
        )

        result: Optional[GeneratedResult] = None
        code: Optional[GeneratedCodeResult] = None
        if isinstance(spec_outcome, BaseException):
            _reraise_cancellation(spec_outcome)
            diagnostics["aiError"] = _describe(spec_outcome)
            logger.warning(f"[ORCHESTRATOR] Spec from prompt failed: {diagnostics['aiError']}")
        else:
            result = spec_outcome
        if isinstance(code_outcome, BaseException):
            _reraise_cancellation(code_outcome)
            diagnostics["codeError"] = _describe(code_outcome)
            logger.warning(f"[ORCHESTRATOR] Full page from prompt failed: {diagnostics['codeError']}")
        else:
            code = code_outcome
        return result, code

    def _build_page(
        self,
        spec: GeneratedSpec,
        image_url: Optional[str],
        code: Optional[GeneratedCodeResult],
    ) -> GeneratedPage:
        html = code.html if code is not None and code.html else None
        return GeneratedPage(
            id=self.store.new_id(),
            title=spec.title,
            hero=PageHero(
                image_url=image_url or "",
                headline=spec.hero.headline,
                subheadline=spec.hero.subheadline,
                cta_text=spec.hero.cta_text,
            ),
            sections=list(spec.sections),
            html=html,
        )


def _describe(error: BaseException) -> str:
    return str(error) or "AI call failed"


def _reraise_cancellation(error: BaseException) -> None:
    if not isinstance(error, Exception):
        raise error


# Global orchestrator instance
orchestrator = GenerationOrchestrator()
