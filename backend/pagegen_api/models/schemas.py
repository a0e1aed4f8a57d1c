"""API request/response schemas and generated page models"""

from typing import Annotated, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ============================================================================
# Generated content
# ============================================================================

class Hero(CamelModel):
    """Hero block as drafted by the model"""
    headline: str
    subheadline: str
    cta_text: str


class PageHero(Hero):
    """Hero block of a stored page; image_url is empty for free-form prompts"""
    image_url: str = ""


class Section(CamelModel):
    title: str
    body: str


class GeneratedSpec(CamelModel):
    """Structured landing page description produced from model text"""
    title: str
    hero: Hero
    sections: List[Section] = Field(default_factory=list)


class GeneratedResult(CamelModel):
    """Spec plus the raw model text it was parsed from"""
    spec: GeneratedSpec
    raw_text: str = ""
    # Set when the screenshot could not be downloaded and only its URL was sent
    image_fetch_error: Optional[str] = None


class GeneratedCodeResult(CamelModel):
    """Full page code drafted from a prompt"""
    steps: List[str] = Field(default_factory=list)
    html: str = ""
    css: Optional[str] = None
    js: Optional[str] = None
    raw_text: str = ""


class GeneratedPage(CamelModel):
    """The stored artifact; immutable once created"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    title: str
    hero: PageHero
    sections: List[Section] = Field(default_factory=list)
    html: Optional[str] = None


# ============================================================================
# Progress channel events
# ============================================================================

class ProgressMessage(CamelModel):
    """Intermediate step notice"""
    type: Literal["progress"] = "progress"
    message: str


class CompleteEvent(CamelModel):
    """Terminal success event"""
    type: Literal["complete"] = "complete"
    spec: GeneratedPage
    preview_url: str
    raw_text: str = ""
    steps: Optional[List[str]] = None
    code_html: Optional[str] = None
    code_css: Optional[str] = None
    code_js: Optional[str] = None
    code_raw_text: Optional[str] = None
    diagnostics: Optional[Dict[str, str]] = None


class ErrorEvent(CamelModel):
    """Terminal failure event; the message is deliberately generic"""
    type: Literal["error"] = "error"
    message: str


ProgressEvent = Annotated[
    Union[ProgressMessage, CompleteEvent, ErrorEvent],
    Field(discriminator="type"),
]


# ============================================================================
# HTTP payloads
# ============================================================================

class GenerateRequest(BaseModel):
    """POST /api/generate request"""
    input: str = Field(..., description="Free-form prompt or absolute screenshot URL")


class ErrorResponse(BaseModel):
    """Error response"""
    error_id: str
    code: str
    message: str
    hint: Optional[str] = None
    retryable: bool = False
    page_id: Optional[str] = None
