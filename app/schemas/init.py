"""Beanie registration of the document models."""

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.schemas.stream import Stream

DOCUMENT_MODELS = [Stream]


async def init_beanie_odm(database: AsyncIOMotorDatabase) -> None:
    """Bind every document model to ``database`` and create missing indexes."""
    await init_beanie(
        database=database,  # type: ignore[arg-type]
        document_models=DOCUMENT_MODELS,
    )


__all__ = ["DOCUMENT_MODELS", "init_beanie_odm"]
