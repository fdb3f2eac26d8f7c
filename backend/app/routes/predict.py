"""
Replicate prediction proxy endpoint.

Responsibilities:
- Validate the JSON payload (image URL or base64 data URL)
- Stage inline images so Replicate can fetch them
- Start the TripoSR prediction and relay Replicate's answer

Pre-flight OPTIONS requests never reach this router; the origin guard
middleware answers them.
"""

import json
from typing import Any, Iterator

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from app.core.config import STAGING_SUPABASE, Settings, get_settings
from app.core.errors import (
    ConfigurationError,
    InternalError,
    ProxyError,
    RequestValidationFailed,
)
from app.core.logger import logger
from app.core.storage import SupabaseStorageUploader
from app.models.request_models import PredictionRequest
from app.models.response_models import ErrorResponse
from app.services.image_stager import ImageStager
from app.services.replicate_client import (
    ReplicateClient,
    ReplicateFileUploader,
    build_prediction_payload,
)

router = APIRouter(tags=["Predictions"])

MISSING_TOKEN_MESSAGE = "Missing Replicate API token. Set the REPLICATE_API_TOKEN environment variable."
MISSING_IMAGE_MESSAGE = "Missing required field: image (URL or data URL)."


def get_replicate_client(settings: Settings = Depends(get_settings)) -> Iterator[ReplicateClient]:
    client = ReplicateClient(settings)
    try:
        yield client
    finally:
        client.close()


def get_image_stager(
    settings: Settings = Depends(get_settings),
    client: ReplicateClient = Depends(get_replicate_client),
) -> ImageStager:
    if settings.staging_backend == STAGING_SUPABASE:
        return ImageStager(SupabaseStorageUploader(settings))
    return ImageStager(ReplicateFileUploader(client))


def get_prediction_dispatcher(client: ReplicateClient = Depends(get_replicate_client)):
    return client


def _validation_message(exc: ValidationError) -> str:
    for error in exc.errors():
        location = error.get("loc") or ()
        if not location or location[0] == "image":
            if error.get("type") in ("missing", "string_type", "string_too_short"):
                return MISSING_IMAGE_MESSAGE
            return error.get("msg", MISSING_IMAGE_MESSAGE).replace("Value error, ", "")
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    return f"Invalid field: {field} ({first.get('msg')})"


async def parse_prediction_request(request: Request) -> PredictionRequest:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise RequestValidationFailed("Request body must be valid JSON.")

    if not isinstance(body, dict):
        raise RequestValidationFailed(MISSING_IMAGE_MESSAGE)

    try:
        return PredictionRequest.model_validate(body)
    except ValidationError as e:
        raise RequestValidationFailed(_validation_message(e))


@router.post(
    "/replicateProxy",
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid image"},
        405: {"model": ErrorResponse, "description": "Method other than POST"},
        500: {"model": ErrorResponse, "description": "Configuration, staging or internal error"},
    },
)
async def replicate_proxy(
    request: Request,
    settings: Settings = Depends(get_settings),
    stager: ImageStager = Depends(get_image_stager),
    dispatcher=Depends(get_prediction_dispatcher),
) -> Any:
    """
    Start a Replicate prediction for the given image.

    Returns the prediction handle exactly as Replicate sent it; the
    client polls it for the finished model.
    """
    try:
        if not settings.replicate_api_token:
            raise ConfigurationError(MISSING_TOKEN_MESSAGE)

        payload = await parse_prediction_request(request)

        image_url = await run_in_threadpool(stager.stage, payload.image)
        prediction_body = build_prediction_payload(
            image_url,
            payload.version,
            payload.format,
            default_version=settings.default_version,
            default_format=settings.default_format,
        )
        return await run_in_threadpool(dispatcher.create_prediction, prediction_body)

    except ProxyError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error while proxying prediction: {str(e)}")
        raise InternalError.wrap(e, settings.expose_internal_errors)
