"""Room API endpoints."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, Field

from pokerroom.domain.snapshot import RoomSnapshot
from pokerroom.domain.story import StoryDraft
from pokerroom.providers import DIContainer
from pokerroom.usecases.base import ActionResult
from config import PRESENCE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_STATUS = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "kicked": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "validation_error": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "transport_error": status.HTTP_503_SERVICE_UNAVAILABLE,
}

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class CreateRoomRequest(BaseModel):
    """Request to create a room."""

    issue_tracker_base_url: Optional[str] = None


class JoinRoomRequest(BaseModel):
    """Request to join a room."""

    name: str
    is_facilitator: bool = False
    is_voter: bool = True


class VoteRequest(BaseModel):
    """Request to submit (or withdraw, with null) a vote."""

    name: str
    value: Optional[float] = None


class StoryPayload(BaseModel):
    title: str
    external_link: Optional[str] = None


class StartVotingRequest(BaseModel):
    """Request to start voting."""

    story: Optional[StoryPayload] = None
    timer_seconds: Optional[int] = None


class EstimateRequest(BaseModel):
    value: Optional[float] = None


class BulkStoriesRequest(BaseModel):
    """Either explicit stories or pasted text, one story per line."""

    stories: List[StoryPayload] = Field(default_factory=list)
    text: Optional[str] = None


class EditStoryRequest(BaseModel):
    title: Optional[str] = None
    external_link: Optional[str] = None


class ReorderRequest(BaseModel):
    story_ids: List[int]


class VoterStatusRequest(BaseModel):
    is_voter: bool


class PublishEstimateBody(BaseModel):
    """Request to publish an estimate. Credentials are used for this call only."""

    username: str
    token: str
    issue_key: Optional[str] = None
    base_url: Optional[str] = None
    story_points: Optional[float] = None
    add_comment: bool = True
    update_story_points: bool = True


def get_container(request: Request) -> DIContainer:
    """Dependency to get the container from app state."""
    return request.app.state.container


def render_snapshot(container: DIContainer, snapshot: RoomSnapshot, viewer: Optional[str] = None) -> Dict[str, Any]:
    return snapshot.to_dict(
        container.allowed_scale,
        viewer=viewer,
        presence_timeout=PRESENCE_TIMEOUT_SECONDS,
        threshold=container.consensus_threshold,
    )


def respond(container: DIContainer, result: ActionResult, viewer: Optional[str] = None) -> Dict[str, Any]:
    """Serialize a successful result or raise the matching HTTP error."""
    if not result.success:
        code = result.error_code or "error"
        if code.startswith("upstream"):
            status_code = status.HTTP_502_BAD_GATEWAY
        else:
            status_code = ERROR_STATUS.get(code, status.HTTP_400_BAD_REQUEST)
        raise HTTPException(status_code=status_code, detail={"error": result.error, "error_code": code})

    body: Dict[str, Any] = {"success": True}
    if result.room is not None:
        body["room"] = render_snapshot(container, result.room, viewer)
    for key, value in result.payload.items():
        body[key] = value.to_dict() if hasattr(value, "to_dict") else value
    return body


# Rooms and participants


@router.post("/rooms", status_code=status.HTTP_201_CREATED)
async def create_room(body: CreateRoomRequest, container: DIContainer = Depends(get_container)) -> dict:
    result = await container.create_room.execute(body.issue_tracker_base_url)
    return respond(container, result)


@router.post("/rooms/{code}/join")
async def join_room(code: str, body: JoinRoomRequest, container: DIContainer = Depends(get_container)) -> dict:
    result = await container.join_room.execute(code, body.name, body.is_facilitator, body.is_voter)
    return respond(container, result, viewer=body.name.strip())


@router.get("/rooms/{code}")
async def get_room_state(
    code: str,
    viewer: Optional[str] = None,
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.get_room_state.execute(code)
    return respond(container, result, viewer=viewer)


@router.post("/rooms/{code}/participants/{name}/heartbeat")
async def heartbeat(code: str, name: str, container: DIContainer = Depends(get_container)) -> dict:
    result = await container.heartbeat.execute(code, name)
    return respond(container, result)


@router.post("/rooms/{code}/participants/{name}/promote")
async def promote_participant(
    code: str,
    name: str,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.promote_participant.execute(code, name, actor=actor)
    return respond(container, result, viewer=actor)


@router.put("/rooms/{code}/participants/{name}/voter")
async def set_voter_status(
    code: str,
    name: str,
    body: VoterStatusRequest,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.set_voter_status.execute(code, name, body.is_voter, actor=actor)
    return respond(container, result, viewer=actor)


@router.delete("/rooms/{code}/participants/{name}")
async def kick_participant(
    code: str,
    name: str,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.kick_participant.execute(code, name, actor=actor)
    return respond(container, result, viewer=actor)


# Voting


@router.post("/rooms/{code}/votes")
async def submit_vote(code: str, body: VoteRequest, container: DIContainer = Depends(get_container)) -> dict:
    result = await container.submit_vote.execute(code, body.name, body.value)
    return respond(container, result, viewer=body.name)


@router.post("/rooms/{code}/start")
async def start_voting(
    code: str,
    body: StartVotingRequest,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    story = StoryDraft(body.story.title, body.story.external_link) if body.story else None
    result = await container.start_voting.execute(code, story, body.timer_seconds, actor=actor)
    return respond(container, result, viewer=actor)


@router.post("/rooms/{code}/reveal")
async def reveal_votes(
    code: str,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.reveal_votes.execute(code, actor=actor)
    return respond(container, result, viewer=actor)


@router.post("/rooms/{code}/next")
async def advance_story(
    code: str,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.advance_story.execute(code, actor=actor)
    return respond(container, result, viewer=actor)


@router.get("/rooms/{code}/history")
async def vote_history(code: str, container: DIContainer = Depends(get_container)) -> dict:
    result = await container.vote_history.execute(code)
    return respond(container, result)


# Stories


@router.post("/rooms/{code}/stories", status_code=status.HTTP_201_CREATED)
async def add_story(
    code: str,
    body: StoryPayload,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.add_stories.add_one(code, body.title, body.external_link, actor=actor)
    return respond(container, result, viewer=actor)


@router.post("/rooms/{code}/stories/bulk", status_code=status.HTTP_201_CREATED)
async def add_stories_bulk(
    code: str,
    body: BulkStoriesRequest,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    if body.text is not None:
        result = await container.import_stories.execute_text(code, body.text, actor=actor)
    else:
        drafts = [StoryDraft(s.title, s.external_link) for s in body.stories]
        result = await container.add_stories.execute(code, drafts, actor=actor)
    return respond(container, result, viewer=actor)


@router.post("/rooms/{code}/stories/import-xlsx", status_code=status.HTTP_201_CREATED)
async def import_stories_xlsx(
    code: str,
    request: Request,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    """Body is the raw .xlsx file."""
    content = await request.body()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": f"Send the spreadsheet as {XLSX_MEDIA_TYPE}", "error_code": "validation_error"},
        )
    result = await container.import_stories.execute_xlsx(code, content, actor=actor)
    return respond(container, result, viewer=actor)


@router.patch("/rooms/{code}/stories/{story_id}")
async def edit_story(
    code: str,
    story_id: int,
    body: EditStoryRequest,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    kwargs: Dict[str, Any] = {"title": body.title}
    if "external_link" in body.model_fields_set:
        kwargs["external_link"] = body.external_link
    result = await container.edit_story.execute(code, story_id, actor=actor, **kwargs)
    return respond(container, result, viewer=actor)


@router.delete("/rooms/{code}/stories/{story_id}")
async def delete_story(
    code: str,
    story_id: int,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.delete_story.execute(code, story_id, actor=actor)
    return respond(container, result, viewer=actor)


@router.put("/rooms/{code}/stories/order")
async def reorder_stories(
    code: str,
    body: ReorderRequest,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.reorder_stories.execute(code, body.story_ids, actor=actor)
    return respond(container, result, viewer=actor)


@router.put("/rooms/{code}/stories/{story_id}/estimate")
async def set_final_estimate(
    code: str,
    story_id: int,
    body: EstimateRequest,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.set_final_estimate.execute(code, story_id, body.value, actor=actor)
    return respond(container, result, viewer=actor)


@router.post("/rooms/{code}/stories/{story_id}/publish")
async def publish_estimate(
    code: str,
    story_id: int,
    body: PublishEstimateBody,
    actor: str = Header(..., alias="X-Participant-Name"),
    container: DIContainer = Depends(get_container),
) -> dict:
    result = await container.publish_estimate.execute(
        code,
        story_id,
        body.username,
        body.token,
        issue_key=body.issue_key,
        base_url=body.base_url,
        story_points=body.story_points,
        add_comment=body.add_comment,
        update_story_points=body.update_story_points,
        actor=actor,
    )
    return respond(container, result)
