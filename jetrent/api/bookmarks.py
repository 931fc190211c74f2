"""API routes for bookmarked listings and their labels."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from jetrent.memory.bookmarks import BookmarkStore


def create_bookmarks_router(store: BookmarkStore) -> APIRouter:
    router = APIRouter(tags=["bookmarks"])

    @router.get("/bookmarks")
    async def list_bookmarks() -> list[dict]:
        return [asdict(bookmark) for bookmark in store.list_bookmarks()]

    @router.post("/bookmarks")
    async def add_bookmark(payload: dict) -> dict:
        listing = payload.get("listing", payload)
        if not isinstance(listing, dict) or not listing.get("id"):
            raise HTTPException(status_code=400, detail="listing with an id is required")
        return asdict(store.add_bookmark(listing))

    @router.delete("/bookmarks/{listing_id}")
    async def remove_bookmark(listing_id: str) -> dict:
        if not store.remove_bookmark(listing_id):
            raise HTTPException(status_code=404, detail="bookmark not found")
        return {"removed": listing_id}

    @router.get("/bookmarks/{listing_id}/labels")
    async def listing_labels(listing_id: str) -> list[dict]:
        if not store.is_bookmarked(listing_id):
            raise HTTPException(status_code=404, detail="bookmark not found")
        return [asdict(label) for label in store.get_listing_labels(listing_id)]

    @router.post("/bookmarks/{listing_id}/labels/{label_id}")
    async def attach_label(listing_id: str, label_id: str) -> dict:
        if not store.add_label_to_listing(listing_id, label_id):
            raise HTTPException(status_code=404, detail="bookmark or label not found")
        return {"listing_id": listing_id, "labels": [asdict(label) for label in store.get_listing_labels(listing_id)]}

    @router.delete("/bookmarks/{listing_id}/labels/{label_id}")
    async def detach_label(listing_id: str, label_id: str) -> dict:
        if not store.remove_label_from_listing(listing_id, label_id):
            raise HTTPException(status_code=404, detail="label is not attached to this bookmark")
        return {"listing_id": listing_id, "labels": [asdict(label) for label in store.get_listing_labels(listing_id)]}

    @router.get("/labels")
    async def list_labels() -> list[dict]:
        return [asdict(label) for label in store.list_labels()]

    @router.post("/labels")
    async def add_label(payload: dict) -> dict:
        name = str(payload.get("name") or "").strip()
        color = str(payload.get("color") or "").strip()
        if not name or not color:
            raise HTTPException(status_code=400, detail="name and color are required")
        return asdict(store.add_label(name, color))

    @router.patch("/labels/{label_id}")
    async def update_label(label_id: str, payload: dict) -> dict:
        label = store.update_label(label_id, name=payload.get("name"), color=payload.get("color"))
        if label is None:
            raise HTTPException(status_code=404, detail="label not found")
        return asdict(label)

    @router.delete("/labels/{label_id}")
    async def remove_label(label_id: str) -> dict:
        if not store.remove_label(label_id):
            raise HTTPException(status_code=404, detail="label not found")
        return {"removed": label_id}

    return router
