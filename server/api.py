"""FastAPI server exposing the try-on session actions."""

from typing import Literal
from uuid import uuid4

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from logic.errors import InvalidInputError, StoreError
from memory.session_state import TryOnSession
from models.wardrobe_item import WardrobeItem
from tryon_app.app import VirtualTryOnApp
from tryon_app.logging_config import configure_logging


class SessionRequest(BaseModel):
    """Request payload for starting a try-on session."""

    user_id: str = Field(..., min_length=1, description="Authenticated user identifier")


class ModelRequest(BaseModel):
    image_data_url: str = Field(..., min_length=1, description="Uploaded photo as a data URL")


class GarmentRequest(BaseModel):
    """Either a wardrobe item id or a custom garment upload."""

    item_id: str | None = None
    name: str | None = None
    image_url: str | None = Field(None, description="Hosted URL or data URL of the garment image")
    category: str = "clothing"


class RevertRequest(BaseModel):
    index: int = Field(..., ge=0)


class PoseRequest(BaseModel):
    pose_index: int = Field(..., ge=0)


class EditRequest(BaseModel):
    kind: Literal["background", "aspect_ratio", "professional", "remix"]
    option: str | None = None
    prompt: str | None = None


class MixtapeRequest(BaseModel):
    theme: str = Field(..., min_length=1)


class SaveModelRequest(BaseModel):
    name: str = Field(..., min_length=1)
    image_url: str | None = None


class SaveOutfitRequest(BaseModel):
    name: str = Field(..., min_length=1)


def _session_or_404(tryon_app: VirtualTryOnApp, session_id: str) -> TryOnSession:
    session = tryon_app.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Unknown session")
    return session


def create_app(tryon_app: VirtualTryOnApp | None = None) -> FastAPI:
    """Build the ASGI app around a (possibly injected) :class:`VirtualTryOnApp`."""

    studio = tryon_app or VirtualTryOnApp()
    api = FastAPI(title="Virtual Try-On Studio", version="0.1.0")
    api.state.studio = studio

    @api.get("/healthz")
    async def healthcheck() -> dict:
        return {
            "status": "ok",
            "service": "virtual-try-on",
            "environment": studio.config.environment or "local",
            "image_model": studio.config.image_model,
            "sessions": len(studio.sessions),
        }

    @api.post("/sessions")
    def create_session(request: SessionRequest) -> dict:
        try:
            session = studio.start_session(request.user_id)
        except StoreError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return {"session_id": session.session_id, "state": session.snapshot()}

    @api.get("/sessions/{session_id}")
    def get_session(session_id: str) -> dict:
        return _session_or_404(studio, session_id).snapshot()

    @api.delete("/sessions/{session_id}")
    def end_session(session_id: str) -> dict:
        if not studio.end_session(session_id):
            raise HTTPException(status_code=404, detail="Unknown session")
        return {"status": "ok"}

    @api.post("/sessions/{session_id}/credits/refresh")
    def refresh_credits(session_id: str) -> dict:
        session = _session_or_404(studio, session_id)
        try:
            credits = studio.refresh_credits(session)
        except StoreError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return {"credits": credits}

    @api.post("/sessions/{session_id}/model")
    def finalize_model(session_id: str, request: ModelRequest) -> dict:
        session = _session_or_404(studio, session_id)
        return studio.orchestrator.finalize_model(session, request.image_data_url)

    @api.post("/sessions/{session_id}/start-over")
    def start_over(session_id: str) -> dict:
        return studio.orchestrator.start_over(_session_or_404(studio, session_id))

    @api.post("/sessions/{session_id}/garments")
    def apply_garment(session_id: str, request: GarmentRequest) -> dict:
        session = _session_or_404(studio, session_id)
        if request.image_url:
            try:
                garment = WardrobeItem(
                    id=request.item_id or f"custom-{uuid4().hex[:12]}",
                    name=request.name or "Custom garment",
                    url=request.image_url,
                    category=request.category,
                )
            except ValueError as exc:
                raise HTTPException(status_code=422, detail=str(exc)) from exc
            return studio.orchestrator.apply_garment(session, garment)
        if not request.item_id:
            raise HTTPException(status_code=422, detail="item_id or image_url is required")
        return studio.orchestrator.apply_wardrobe_item(session, request.item_id)

    @api.delete("/sessions/{session_id}/wardrobe/{item_id}")
    def delete_wardrobe_item(session_id: str, item_id: str) -> dict:
        return studio.orchestrator.delete_wardrobe_item(_session_or_404(studio, session_id), item_id)

    @api.post("/sessions/{session_id}/undo")
    def remove_last_garment(session_id: str) -> dict:
        return studio.orchestrator.remove_last_garment(_session_or_404(studio, session_id))

    @api.post("/sessions/{session_id}/revert")
    def revert(session_id: str, request: RevertRequest) -> dict:
        return studio.orchestrator.revert_to(_session_or_404(studio, session_id), request.index)

    @api.post("/sessions/{session_id}/pose")
    def select_pose(session_id: str, request: PoseRequest) -> dict:
        return studio.orchestrator.select_pose(_session_or_404(studio, session_id), request.pose_index)

    @api.post("/sessions/{session_id}/edits")
    def edit_image(session_id: str, request: EditRequest) -> dict:
        session = _session_or_404(studio, session_id)
        if request.kind == "remix":
            return studio.orchestrator.edit_image(session, request.prompt or "")
        if not request.option:
            raise HTTPException(status_code=422, detail="option is required for preset edits")
        return studio.orchestrator.apply_preset_edit(session, request.kind, request.option)

    @api.post("/sessions/{session_id}/mixtape")
    def style_mixtape(session_id: str, request: MixtapeRequest) -> dict:
        return studio.orchestrator.style_mixtape(_session_or_404(studio, session_id), request.theme)

    @api.get("/sessions/{session_id}/library")
    def library(session_id: str) -> dict:
        session = _session_or_404(studio, session_id)
        result = studio.orchestrator.refresh_library(session)
        result["models"] = [model.to_dict() for model in session.saved_models]
        result["outfits"] = [outfit.to_dict() for outfit in session.saved_outfits]
        return result

    @api.post("/sessions/{session_id}/models")
    def save_model(session_id: str, request: SaveModelRequest) -> dict:
        session = _session_or_404(studio, session_id)
        return studio.orchestrator.save_model(session, request.name, request.image_url)

    @api.post("/sessions/{session_id}/models/{model_id}/load")
    def load_model(session_id: str, model_id: str) -> dict:
        return studio.orchestrator.load_model(_session_or_404(studio, session_id), model_id)

    @api.delete("/sessions/{session_id}/models/{model_id}")
    def delete_model(session_id: str, model_id: str) -> dict:
        return studio.orchestrator.delete_model(_session_or_404(studio, session_id), model_id)

    @api.post("/sessions/{session_id}/outfits")
    def save_outfit(session_id: str, request: SaveOutfitRequest) -> dict:
        return studio.orchestrator.save_outfit(_session_or_404(studio, session_id), request.name)

    @api.post("/sessions/{session_id}/outfits/{outfit_id}/load")
    def load_outfit(session_id: str, outfit_id: str) -> dict:
        return studio.orchestrator.load_outfit(_session_or_404(studio, session_id), outfit_id)

    @api.delete("/sessions/{session_id}/outfits/{outfit_id}")
    def delete_outfit(session_id: str, outfit_id: str) -> dict:
        return studio.orchestrator.delete_outfit(_session_or_404(studio, session_id), outfit_id)

    @api.post("/webhooks/checkout")
    def checkout_webhook(payload: dict) -> dict:
        try:
            return studio.handle_checkout_event(payload)
        except InvalidInputError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except StoreError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    return api


def get_app() -> FastAPI:
    """Expose the FastAPI instance for ASGI servers."""

    configure_logging()
    return create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:get_app", factory=True, host="0.0.0.0", port=8080, reload=False)
