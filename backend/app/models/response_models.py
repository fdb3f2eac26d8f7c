"""
Pydantic models for API response schemas.

Successful predictions are relayed as the provider's raw JSON, so only
the error envelope is modelled here.
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
