"""GET /api/pages/{page_id} endpoint"""

from fastapi import APIRouter
from pagegen_api.core.page_store import page_store
from pagegen_api.models.errors import ApplicationError, ErrorCode
from pagegen_api.models.schemas import ErrorResponse, GeneratedPage

router = APIRouter()


@router.get(
    "/pages/{page_id}",
    response_model=GeneratedPage,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}},
)
async def get_page(page_id: str) -> GeneratedPage:
    """Return the stored page record as JSON"""
    page = page_store.get(page_id)
    if page is None:
        raise ApplicationError(
            code=ErrorCode.NOT_FOUND,
            message="Page not found",
            hint="Pages live in memory only and are lost when the server restarts.",
            page_id=page_id
        )
    return page
