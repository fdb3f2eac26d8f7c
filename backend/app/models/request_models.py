"""
Pydantic models for API request validation.

Responsibilities:
- Define the schema for the prediction proxy payload
- Fold the `imageBase64` form into a regular data URL
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, StrictStr, field_validator, model_validator

DATA_URL_PREFIX = "data:"
DEFAULT_INLINE_MIME = "image/png"


class PredictionRequest(BaseModel):
    image: StrictStr = Field(..., min_length=1, description="https URL or base64 data URL")
    version: Optional[StrictStr] = Field(None, description="Replicate model version")
    format: Optional[StrictStr] = Field(None, description="Output format, e.g. glb")

    @model_validator(mode="before")
    @classmethod
    def use_image_base64(cls, data: Any) -> Any:
        """Accept `imageBase64` (bare base64 or data URL) when `image` is absent."""
        if not isinstance(data, dict) or data.get("image") is not None:
            return data

        inline = data.get("imageBase64")
        if not isinstance(inline, str) or not inline.strip():
            return data

        inline = inline.strip()
        if not inline.lower().startswith(DATA_URL_PREFIX):
            inline = f"data:{DEFAULT_INLINE_MIME};base64,{inline}"
        return {**data, "image": inline}

    @field_validator("image")
    @classmethod
    def check_image_reference(cls, value: str) -> str:
        value = value.strip()
        lowered = value.lower()
        if not lowered.startswith(("http://", "https://", DATA_URL_PREFIX)):
            raise ValueError("image must be an http(s) URL or a base64 data URL")
        return value
