from loguru import logger

from app.app_config import get_app_environ_config
from app.schemas.init import init_beanie_odm
from app.shared.storage.mongo import get_mongo_client

DEFAULT_DATABASE = "ingress_control"


async def init_schema():
    """Connect Beanie to the database named in MONGO_URL_<MONGO_LABEL> (or ingress_control)."""
    mongo_client = get_mongo_client(get_app_environ_config().MONGO_LABEL)
    db = mongo_client.get_default_database(DEFAULT_DATABASE)
    await init_beanie_odm(db)
    logger.info(f"Beanie initialized on database '{db.name}'")


if __name__ == "__main__":
    import asyncio

    asyncio.run(init_schema())
