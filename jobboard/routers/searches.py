# searches.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from jobboard.database import get_db
from jobboard.models.searches import SavedSearch
from jobboard.models.user import User
from jobboard.routers.dependencies import get_current_user
from jobboard.schemas.searches import (
    RecentSearchCreate,
    RecentSearchRead,
    SavedSearchCreate,
    SavedSearchRead,
    SavedSearchUpdate,
)
from jobboard.services.search_history import recent_searches, record_recent_search


router = APIRouter(prefix="/user", tags=["searches"])


def _owned_search(db: Session, user: User, search_id: int) -> SavedSearch:
    search = db.query(SavedSearch).filter(SavedSearch.id == search_id, SavedSearch.user_id == user.id).first()
    if search is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Saved search not found")
    return search


@router.get("/saved-searches", response_model=list[SavedSearchRead])
def list_saved_searches(db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> list[SavedSearchRead]:
    searches = (
        db.query(SavedSearch)
        .filter(SavedSearch.user_id == user.id)
        .order_by(SavedSearch.created_at.desc(), SavedSearch.id.desc())
        .all()
    )
    return [SavedSearchRead.model_validate(search) for search in searches]


@router.post("/saved-searches", response_model=SavedSearchRead, status_code=status.HTTP_201_CREATED)
def create_saved_search(
    payload: SavedSearchCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> SavedSearchRead:
    search = SavedSearch(
        user_id=user.id,
        name=payload.name,
        query=payload.query or None,
        location=payload.location or None,
        filters=payload.filters,
        alert_enabled=payload.alert_enabled,
        alert_frequency=payload.alert_frequency.value,
    )
    db.add(search)
    db.commit()
    db.refresh(search)
    return SavedSearchRead.model_validate(search)


@router.patch("/saved-searches/{search_id}", response_model=SavedSearchRead)
def update_saved_search(
    search_id: int,
    payload: SavedSearchUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> SavedSearchRead:
    search = _owned_search(db, user, search_id)
    for field, value in payload.model_dump(exclude_unset=True, mode="json").items():
        if value is None and field in ("name", "filters", "alert_enabled", "alert_frequency"):
            continue
        setattr(search, field, value)
    db.commit()
    db.refresh(search)
    return SavedSearchRead.model_validate(search)


@router.delete("/saved-searches/{search_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_saved_search(search_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> None:
    db.delete(_owned_search(db, user, search_id))
    db.commit()


@router.get("/recent-searches", response_model=list[RecentSearchRead])
def list_recent_searches(db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> list[RecentSearchRead]:
    return [RecentSearchRead.model_validate(entry) for entry in recent_searches(db, user.id)]


@router.post("/recent-searches", response_model=RecentSearchRead, status_code=status.HTTP_201_CREATED)
def add_recent_search(
    payload: RecentSearchCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> RecentSearchRead:
    entry = record_recent_search(db, user.id, query=payload.query, location=payload.location, filters=payload.filters)
    db.commit()
    db.refresh(entry)
    return RecentSearchRead.model_validate(entry)
