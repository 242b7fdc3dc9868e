"""
Catalog routes.

Every entity gets the same eight endpoints; each endpoint hands the request
to its controller and converts the outcome into exactly one response.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse

from api.rendering import read_form, to_response
from catalog.controllers import CatalogControllers

router = APIRouter(prefix="/catalog", default_response_class=HTMLResponse, include_in_schema=False)

# (path segment, list path, attribute on CatalogControllers)
ENTITY_ROUTES = [
    ("author", "authors", "authors"),
    ("book", "books", "books"),
    ("genre", "genres", "genres"),
    ("bookinstance", "bookinstances", "book_instances"),
]


def get_controllers(request: Request) -> CatalogControllers:
    """Controllers built at startup; overridden in tests."""
    controllers = getattr(request.app.state, "controllers", None)
    if controllers is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service not available"
        )
    return controllers


@router.get("/", name="index")
async def index(request: Request, controllers: CatalogControllers = Depends(get_controllers)):
    return to_response(request, await controllers.home.index())


def register_entity_routes(segment: str, plural: str, attribute: str) -> None:
    """Add the list/detail/create/delete/update endpoints for one entity."""

    async def create_get(request: Request, controllers: CatalogControllers = Depends(get_controllers)):
        return to_response(request, await getattr(controllers, attribute).create_get())

    async def create_post(request: Request, controllers: CatalogControllers = Depends(get_controllers)):
        body = await read_form(request)
        return to_response(request, await getattr(controllers, attribute).create_post(body))

    async def delete_get(record_id: str, request: Request, controllers: CatalogControllers = Depends(get_controllers)):
        return to_response(request, await getattr(controllers, attribute).delete_get(record_id))

    async def delete_post(record_id: str, request: Request, controllers: CatalogControllers = Depends(get_controllers)):
        return to_response(request, await getattr(controllers, attribute).delete_post(record_id))

    async def update_get(record_id: str, request: Request, controllers: CatalogControllers = Depends(get_controllers)):
        return to_response(request, await getattr(controllers, attribute).update_get(record_id))

    async def update_post(record_id: str, request: Request, controllers: CatalogControllers = Depends(get_controllers)):
        body = await read_form(request)
        return to_response(request, await getattr(controllers, attribute).update_post(record_id, body))

    async def detail(record_id: str, request: Request, controllers: CatalogControllers = Depends(get_controllers)):
        return to_response(request, await getattr(controllers, attribute).detail(record_id))

    async def list_records(request: Request, controllers: CatalogControllers = Depends(get_controllers)):
        return to_response(request, await getattr(controllers, attribute).list())

    # "create" must be matched before the {record_id} routes
    router.add_api_route(f"/{segment}/create", create_get, methods=["GET"], name=f"{segment}_create_get")
    router.add_api_route(f"/{segment}/create", create_post, methods=["POST"], name=f"{segment}_create_post")
    router.add_api_route(f"/{segment}/{{record_id}}/delete", delete_get, methods=["GET"], name=f"{segment}_delete_get")
    router.add_api_route(f"/{segment}/{{record_id}}/delete", delete_post, methods=["POST"], name=f"{segment}_delete_post")
    router.add_api_route(f"/{segment}/{{record_id}}/update", update_get, methods=["GET"], name=f"{segment}_update_get")
    router.add_api_route(f"/{segment}/{{record_id}}/update", update_post, methods=["POST"], name=f"{segment}_update_post")
    router.add_api_route(f"/{segment}/{{record_id}}", detail, methods=["GET"], name=f"{segment}_detail")
    router.add_api_route(f"/{plural}", list_records, methods=["GET"], name=f"{segment}_list")


for segment, plural, attribute in ENTITY_ROUTES:
    register_entity_routes(segment, plural, attribute)
