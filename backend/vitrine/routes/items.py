"""
Vitrine Backend — Item Route Handlers
======================================

What:  CRUD endpoints for catalog items plus the local blob file server.
How:   Extracts request data, delegates to ItemService, returns JSON.
       Domain errors propagate to the global exception handlers.

Route Inventory:
    POST   /items              multipart: image file + description
    GET    /items              all items, newest first
    GET    /items/{item_id}    single item
    PUT    /items/{item_id}    JSON {"description": ...}
    DELETE /items/{item_id}    item row and its image
    GET    /files/{bucket}/{path}   image bytes (local blob backend only)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse

from vitrine.exceptions import NotFoundError, StorageError, ValidationError
from vitrine.schemas.item import (
    DeleteResponse,
    ErrorResponse,
    ItemCreatedResponse,
    ItemResponse,
    ItemUpdate,
)
from vitrine.services.blob_store import LocalBlobStore
from vitrine.services.file_service import staged_upload
from vitrine.services.item_service import ItemService
from vitrine.state import AppState, get_app_state, get_item_service

router = APIRouter(tags=["Items"])


@router.post(
    "/items",
    status_code=201,
    response_model=ItemCreatedResponse,
    responses={
        400: {"description": "Missing image", "model": ErrorResponse},
        500: {"description": "Blob or record store failure", "model": ErrorResponse},
    },
    summary="Create an item from an uploaded image",
)
async def create_item(
    image: Optional[UploadFile] = File(default=None, description="Item image"),
    description: Optional[str] = Form(default=None, description="Item description"),
    item_service: ItemService = Depends(get_item_service),
) -> ItemCreatedResponse:
    """
    Upload the image, then insert the item row.

    The spooled upload is released when the `async with` block exits,
    on success and on every error path.
    """
    async with staged_upload(image) as staged:
        item = await item_service.create(
            content=staged.content,
            content_type=staged.content_type,
            original_name=staged.filename,
            description=description,
        )
    return ItemCreatedResponse(success=True, item=item)


@router.get(
    "/items",
    response_model=List[ItemResponse],
    responses={500: {"description": "Record store failure", "model": ErrorResponse}},
    summary="List all items, newest first",
)
async def list_items(
    item_service: ItemService = Depends(get_item_service),
) -> List[ItemResponse]:
    return await item_service.list_items()


@router.get(
    "/items/{item_id}",
    response_model=ItemResponse,
    responses={
        404: {"description": "Item not found", "model": ErrorResponse},
        500: {"description": "Record store failure", "model": ErrorResponse},
    },
    summary="Get a single item",
)
async def get_item(
    item_id: int,
    item_service: ItemService = Depends(get_item_service),
) -> ItemResponse:
    return await item_service.get_item(item_id)


@router.put(
    "/items/{item_id}",
    response_model=ItemResponse,
    responses={
        404: {"description": "Item not found", "model": ErrorResponse},
        500: {"description": "Record store failure", "model": ErrorResponse},
    },
    summary="Update an item description",
)
async def update_item(
    item_id: int,
    payload: ItemUpdate,
    item_service: ItemService = Depends(get_item_service),
) -> ItemResponse:
    """Only the description changes; the image is immutable after creation."""
    return await item_service.update_description(item_id, payload.description)


@router.delete(
    "/items/{item_id}",
    response_model=DeleteResponse,
    responses={
        404: {"description": "Item not found", "model": ErrorResponse},
        500: {"description": "Record store failure", "model": ErrorResponse},
    },
    summary="Delete an item and its image",
)
async def delete_item(
    item_id: int,
    item_service: ItemService = Depends(get_item_service),
) -> DeleteResponse:
    await item_service.delete(item_id)
    return DeleteResponse(success=True)


@router.get(
    "/files/{bucket}/{file_path:path}",
    summary="Serve images stored by the local blob backend",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found"},
    },
)
async def serve_file(
    bucket: str,
    file_path: str,
    state: AppState = Depends(get_app_state),
) -> FileResponse:
    """
    Serve a blob written by LocalBlobStore.

    With the Supabase backend, image URLs point at Supabase directly and this
    route answers 404.
    """
    store = state.blob_store
    if not isinstance(store, LocalBlobStore) or bucket != store.bucket:
        raise NotFoundError(resource="file", resource_id=f"{bucket}/{file_path}")

    try:
        full_path = store.resolve(file_path)
    except StorageError:
        raise ValidationError(message="Invalid file path", field="file_path")

    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=f"{bucket}/{file_path}")

    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
