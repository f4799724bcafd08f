"""Sidebar navigation tree endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from sectionwiki.schemas import NavigationNode
from sectionwiki.store import DocumentStore
from sectionwiki.utils.logging_config import get_logger
from server.dependencies import get_store
from server.models import CreateNodeRequest, ErrorResponse, NavigationTreeResponse, ReorderNodeRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/api/navigation")

StoreDep = Annotated[DocumentStore, Depends(get_store)]

_REJECTED = {status.HTTP_409_CONFLICT: {"model": ErrorResponse, "description": "The store rejected the change"}}


@router.get("", response_model=NavigationTreeResponse)
async def get_navigation(store: StoreDep) -> NavigationTreeResponse:
    """Return the sidebar tree, children ordered by ``order_index``."""
    return NavigationTreeResponse(nodes=await store.get_navigation_tree())


@router.post("/nodes", response_model=NavigationNode, status_code=status.HTTP_201_CREATED, responses=_REJECTED)
async def create_node(store: StoreDep, request: CreateNodeRequest) -> NavigationNode:
    """Add a folder or document entry to the sidebar."""
    node = await store.create_node(
        request.title,
        request.path,
        node_type=request.type,
        parent_id=request.parent_id,
        order_index=request.order_index,
    )
    if node is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Could not create {request.path!r}")
    return node


@router.patch("/nodes/{node_id}", status_code=status.HTTP_204_NO_CONTENT, responses=_REJECTED)
async def reorder_node(store: StoreDep, node_id: str, request: ReorderNodeRequest) -> Response:
    """Move a node under a new parent at a new position."""
    if not await store.reorder_node(node_id, request.parent_id, request.order_index):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Could not move node {node_id!r}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/nodes/{node_id}", status_code=status.HTTP_204_NO_CONTENT, responses=_REJECTED)
async def delete_node(store: StoreDep, node_id: str) -> Response:
    """Delete a node with all of its descendants."""
    if not await store.delete_node(node_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Could not delete node {node_id!r}")
    logger.info("Navigation node deleted", extra={"node_id": node_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
