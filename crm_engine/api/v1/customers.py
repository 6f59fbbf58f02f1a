"""Customer directory API endpoints."""

from fastapi import APIRouter, Query

from crm_engine.auth.dependencies import CurrentUser
from crm_engine.dependencies import AppSettings, BackendClient
from crm_engine.schemas.directory import PageResult
from crm_engine.services.directory import distinct_tags, parse_query_spec, query

router = APIRouter()


@router.get("", response_model=PageResult, response_model_by_alias=True)
async def list_customers(
    current_user: CurrentUser,
    backend: BackendClient,
    settings: AppSettings,
    search: str = Query("", max_length=200),
    tag: str | None = Query(None),
    sort: str = Query("latest"),
    page: int = Query(1),
    size: int | None = Query(None),
) -> PageResult:
    """Search, filter, sort and paginate the customer directory."""
    spec = parse_query_spec(
        {
            "searchText": search,
            "tagFilter": tag,
            "sortMode": sort,
            "page": page,
            "pageSize": size if size is not None else settings.directory_page_size,
        }
    )
    customers = await backend.list_customers(current_user.token)
    return query(customers, spec)


@router.get("/tags", response_model=list[str])
async def list_tags(current_user: CurrentUser, backend: BackendClient) -> list[str]:
    """Distinct tags across all customers, for the tag filter control."""
    customers = await backend.list_customers(current_user.token)
    return distinct_tags(customers)
