"""
Generation API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.middleware.auth import get_current_user
from api.dependencies import get_generation_service
from modules.marketplace.models import Emote
from modules.users.exceptions import InsufficientCreditsError
from shared.models import AuthenticatedUser

from .exceptions import (
    GenerationFailedError,
    GeneratorNotConfiguredError,
    ImageDownloadError,
    InvalidImageUrlError,
    StorageError,
)
from .models import (
    GenerateEmoteRequest,
    GenerateEmoteResponse,
    ImportEmoteRequest,
    RemoveBackgroundRequest,
    RemoveBackgroundResponse,
)
from .service import GenerationService

router = APIRouter()


@router.post("", response_model=GenerateEmoteResponse, status_code=201)
async def generate_emote(
    request: GenerateEmoteRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: GenerationService = Depends(get_generation_service),
) -> GenerateEmoteResponse:
    """
    Generate an emote from a prompt and style with the chosen model.

    Costs one credit. The credit is returned if generation or upload fails.
    """
    try:
        return await service.generate_emote(user.id, request)
    except GeneratorNotConfiguredError:
        raise HTTPException(status_code=503, detail=f"Model {request.model} is not available")
    except InsufficientCreditsError as e:
        raise HTTPException(status_code=402, detail=e.message)
    except GenerationFailedError:
        raise HTTPException(status_code=502, detail="Image generation failed")
    except StorageError:
        raise HTTPException(status_code=503, detail="Could not store generated image")


@router.post("/import", response_model=Emote, status_code=201)
async def import_emote(
    request: ImportEmoteRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: GenerationService = Depends(get_generation_service),
) -> Emote:
    """Save an image the client already has (edited, background removed) as an emote."""
    try:
        return await service.import_emote(user.id, request)
    except InvalidImageUrlError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except ImageDownloadError:
        raise HTTPException(status_code=502, detail="Could not download image")
    except StorageError:
        raise HTTPException(status_code=503, detail="Could not store image")


@router.post("/remove-background", response_model=RemoveBackgroundResponse)
async def remove_background(
    request: RemoveBackgroundRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: GenerationService = Depends(get_generation_service),
) -> RemoveBackgroundResponse:
    try:
        image_url = await service.remove_background(request.image_url)
    except InvalidImageUrlError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except GeneratorNotConfiguredError:
        raise HTTPException(status_code=503, detail="Background removal is not available")
    except GenerationFailedError:
        raise HTTPException(status_code=502, detail="Background removal failed")
    return RemoveBackgroundResponse(image_url=image_url)


@router.get("/emotes", response_model=list[Emote])
async def list_my_emotes(
    user: AuthenticatedUser = Depends(get_current_user),
    service: GenerationService = Depends(get_generation_service),
) -> list[Emote]:
    """The caller's emotes; readable whether or not any image model is configured."""
    return await service.list_emotes(user.id)
