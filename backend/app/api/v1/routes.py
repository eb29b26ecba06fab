from __future__ import annotations

from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from ...analytics import AnalyticsService, EmotionReading
from ...core.config import Settings
from ...core.errors import AlreadyMember, DataUnavailable, GroupNotFound, InviteeNotFound
from ...core.security import resolve_authenticated_user
from ...db.models import StudyGroup
from ...metrics import USER_API_COUNTER
from ...schemas.analytics import AnalyticsResponse, SuggestionListResponse, SuggestionModel
from ...schemas.groups import (
    GroupCreate,
    GroupInvite,
    GroupLeaveResponse,
    GroupListResponse,
    GroupMemberModel,
    GroupModel,
    MemberProgress,
)
from ...schemas.study_log import (
    StudyLogCreate,
    StudyLogCreateResponse,
    StudyLogListResponse,
    StudyLogModel,
)
from ...schemas.users import FavoritesResponse, FavoritesUpdate, ProfileModel, ProfileUpdate
from ...services.ratelimit import RateLimiter
from ...services.storage import StorageService

router = APIRouter(prefix="/api/v1", tags=["core"])

ANALYTICS_UNAVAILABLE = "analytics temporarily unavailable"


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_storage_service(request: Request) -> StorageService:
    return request.app.state.storage_service


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_analytics_service(request: Request) -> AnalyticsService:
    return request.app.state.analytics_service


# -- study logs ----------------------------------------------------------
@router.get("/study-logs", response_model=StudyLogListResponse)
async def list_study_logs(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> StudyLogListResponse:
    rows = await storage.list_study_logs(user_id=user_id)
    items = [StudyLogModel.model_validate(row, from_attributes=True) for row in rows]
    USER_API_COUNTER.labels(endpoint="study_logs_get").inc()
    return StudyLogListResponse(items=items)


@router.post(
    "/study-logs",
    response_model=StudyLogCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_study_log(
    payload: StudyLogCreate,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> StudyLogCreateResponse:
    key = f"study_log:{user_id}"
    if not limiter.allow(key):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="rate limited",
            headers={"Retry-After": str(limiter.retry_after(key))},
        )
    entry = await storage.add_study_log(
        user_id=user_id,
        subject=payload.subject,
        emotions=[EmotionReading(item.emotion, item.score) for item in payload.emotions],
        study_time=payload.study_time,
        duration=payload.duration,
        notes=payload.notes,
        tags=payload.tags,
    )
    USER_API_COUNTER.labels(endpoint="study_logs_post").inc()
    return StudyLogCreateResponse(
        id=entry.id,
        log=StudyLogModel.model_validate(entry, from_attributes=True),
    )


@router.delete("/study-logs/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_study_log(
    log_id: int,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> Response:
    deleted = await storage.delete_study_log(user_id=user_id, log_id=log_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="study log not found")
    USER_API_COUNTER.labels(endpoint="study_logs_delete").inc()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/study-logs/analytics",
    response_model=AnalyticsResponse,
    response_model_by_alias=True,
)
async def get_analytics(
    analytics: AnalyticsService = Depends(get_analytics_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> AnalyticsResponse:
    try:
        report = await analytics.build_report(user_id)
    except DataUnavailable as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=ANALYTICS_UNAVAILABLE,
        ) from exc
    USER_API_COUNTER.labels(endpoint="analytics_get").inc()
    return AnalyticsResponse.from_report(report)


@router.get("/study-logs/suggestions", response_model=SuggestionListResponse)
async def get_suggestions(
    analytics: AnalyticsService = Depends(get_analytics_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> SuggestionListResponse:
    try:
        suggestions = await analytics.suggestions(user_id)
    except DataUnavailable as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=ANALYTICS_UNAVAILABLE,
        ) from exc
    USER_API_COUNTER.labels(endpoint="suggestions_get").inc()
    return SuggestionListResponse(
        items=[SuggestionModel.from_suggestion(item) for item in suggestions]
    )


# -- users ---------------------------------------------------------------
@router.get("/users/profile", response_model=ProfileModel)
async def read_profile(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> ProfileModel:
    user = await storage.get_user_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user not found")
    return ProfileModel.model_validate(user, from_attributes=True)


@router.patch("/users/profile", response_model=ProfileModel)
async def update_profile(
    payload: ProfileUpdate,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> ProfileModel:
    user = await storage.update_profile(
        user_id,
        name=payload.name,
        email=str(payload.email) if payload.email else None,
    )
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user not found")
    USER_API_COUNTER.labels(endpoint="profile_patch").inc()
    return ProfileModel.model_validate(user, from_attributes=True)


@router.put("/users/favorites", response_model=FavoritesResponse)
async def replace_favorites(
    payload: FavoritesUpdate,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> FavoritesResponse:
    favorites = await storage.set_favorite_subjects(user_id, payload.favorite_subjects)
    return FavoritesResponse(favorite_subjects=favorites)


@router.post("/users/favorites/{subject}", response_model=FavoritesResponse)
async def toggle_favorite(
    subject: str,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> FavoritesResponse:
    if not subject.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="subject is required")
    favorites = await storage.toggle_favorite_subject(user_id, subject)
    return FavoritesResponse(favorite_subjects=favorites)


# -- study groups --------------------------------------------------------
def _group_model(
    group: StudyGroup,
    progress: dict[int, dict[str, int]] | None = None,
) -> GroupModel:
    members = []
    for member in group.members:
        item = GroupMemberModel.model_validate(member, from_attributes=True)
        if progress is not None:
            item.progress = MemberProgress(**progress.get(member.user_id, {}))
        members.append(item)
    return GroupModel(
        id=group.id,
        name=group.name,
        description=group.description,
        created_by=group.created_by,
        created_at=group.created_at,
        updated_at=group.updated_at,
        members=members,
    )


@router.post(
    "/study-groups",
    response_model=GroupModel,
    status_code=status.HTTP_201_CREATED,
)
async def create_group(
    payload: GroupCreate,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> GroupModel:
    group = await storage.create_group(
        user_id=user_id,
        name=payload.name,
        description=payload.description,
    )
    USER_API_COUNTER.labels(endpoint="groups_post").inc()
    return _group_model(group)


@router.get("/study-groups", response_model=GroupListResponse)
async def list_groups(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> GroupListResponse:
    groups = await storage.list_groups(user_id)
    USER_API_COUNTER.labels(endpoint="groups_get").inc()
    return GroupListResponse(items=[_group_model(group) for group in groups])


@router.get("/study-groups/{group_id}", response_model=GroupModel)
async def read_group(
    group_id: int,
    storage: StorageService = Depends(get_storage_service),
    settings: Settings = Depends(get_settings_from_app),
    user_id: int = Depends(resolve_authenticated_user),
) -> GroupModel:
    try:
        group = await storage.get_group(group_id, user_id)
    except GroupNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="group not found") from exc
    since = datetime.utcnow() - timedelta(days=settings.group_activity_days)
    progress = await storage.member_progress(
        [member.user_id for member in group.members], since
    )
    USER_API_COUNTER.labels(endpoint="group_get").inc()
    return _group_model(group, progress)


@router.post("/study-groups/{group_id}/invite", response_model=GroupModel)
async def invite_to_group(
    group_id: int,
    payload: GroupInvite,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> GroupModel:
    try:
        group = await storage.invite_member(
            group_id=group_id,
            user_id=user_id,
            email=str(payload.email),
        )
    except GroupNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="group not found") from exc
    except InviteeNotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="no user found with this email",
        ) from exc
    except AlreadyMember as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="user is already a member",
        ) from exc
    USER_API_COUNTER.labels(endpoint="group_invite").inc()
    return _group_model(group)


@router.post("/study-groups/{group_id}/leave", response_model=GroupLeaveResponse)
async def leave_group(
    group_id: int,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> GroupLeaveResponse:
    try:
        deleted = await storage.leave_group(group_id=group_id, user_id=user_id)
    except GroupNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="group not found") from exc
    USER_API_COUNTER.labels(endpoint="group_leave").inc()
    message = "group deleted (no members left)" if deleted else "left group"
    return GroupLeaveResponse(deleted=deleted, message=message)
