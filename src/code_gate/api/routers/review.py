"""
Live review endpoints: the review page and its polled status.
"""
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse

from ...models.review import StatusSnapshot

router = APIRouter(tags=["review"])


def _get_review(request: Request, review_id: str):
    live = request.app.state.reviews.get(review_id)
    if live is None:
        raise HTTPException(status_code=404, detail="Not Found")
    return live


@router.get("/review/{review_id}", response_class=HTMLResponse)
def review_page(review_id: str, request: Request):
    return HTMLResponse(_get_review(request, review_id).html)


@router.get("/review/{review_id}/status", response_model=StatusSnapshot)
def review_status(review_id: str, request: Request):
    """
    Current snapshot of the review, recomputed on every poll.
    Only completed items are included; `done` flips once every dispatched unit is in.
    """
    return _get_review(request, review_id).status()
