"""Error models"""

from enum import Enum
from typing import Optional
import uuid


class ErrorCode(str, Enum):
    """Error codes"""
    INVALID_INPUT = "INVALID_INPUT"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    GENERATION_FAILED = "GENERATION_FAILED"
    SPEC_PARSE_ERROR = "SPEC_PARSE_ERROR"
    NOT_FOUND = "NOT_FOUND"
    ORCHESTRATION_ERROR = "ORCHESTRATION_ERROR"


class ApplicationError(Exception):
    """Application error carrying a code, a user-facing message and an optional hint"""
    def __init__(self, code: ErrorCode, message: str, retryable: bool = False, hint: Optional[str] = None, page_id: Optional[str] = None):
        self.error_id = str(uuid.uuid4())
        self.code = code
        self.message = message
        self.retryable = retryable
        self.hint = hint
        self.page_id = page_id
        super().__init__(self.message)

    def model_dump(self):
        """Return dict representation for API responses"""
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "message": self.message,
            "hint": self.hint,
            "retryable": self.retryable,
            "page_id": self.page_id
        }

    @property
    def http_status(self) -> int:
        """Map error code to HTTP status"""
        mapping = {
            ErrorCode.INVALID_INPUT: 400,
            ErrorCode.NOT_FOUND: 404,
            ErrorCode.CONFIGURATION_ERROR: 500,
            ErrorCode.GENERATION_FAILED: 502,
            ErrorCode.SPEC_PARSE_ERROR: 502,
            ErrorCode.ORCHESTRATION_ERROR: 500,
        }
        return mapping.get(self.code, 500)
