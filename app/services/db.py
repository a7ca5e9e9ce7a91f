import motor.motor_asyncio
from pymongo import ASCENDING, DESCENDING
import os
from dotenv import load_dotenv

from app.utils.logging_config import get_logger

logger = get_logger(__name__)

load_dotenv()

MONGO_DETAILS = os.getenv("MONGO_DETAILS", "mongodb://localhost:27017")

DB_NAME = os.getenv("DB_NAME", "job_tracker_db")

logger.info(f"Initializing MongoDB connection to database: {DB_NAME}")

try:
    client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_DETAILS)
    db = client[DB_NAME]
    logger.info("MongoDB client initialized successfully")
except Exception as e:
    logger.error(f"Failed to initialize MongoDB client: {e}")
    raise

# Collections
applications_coll = db["applications"]
project_bullets_coll = db["project_bullets"]


async def _create_index(coll, keys, name: str, **kwargs) -> None:
    try:
        await coll.create_index(keys, **kwargs)
        logger.debug(f"Created index on {coll.name}.{name}")
    except Exception as e:
        if "already exists" in str(e).lower():
            logger.debug(f"Index on {coll.name}.{name} already exists")
        else:
            logger.warning(f"Could not create index on {coll.name}.{name}: {e}")


async def init_indexes():
    """Index initialization for collections."""
    logger.info("Starting database index initialization")

    # Applications are always read by owner
    await _create_index(
        applications_coll, [("id", ASCENDING), ("user_id", ASCENDING)], "(id, user_id)", unique=True
    )

    await _create_index(
        project_bullets_coll, [("id", ASCENDING), ("user_id", ASCENDING)], "(id, user_id)", unique=True
    )
    await _create_index(
        project_bullets_coll, [("user_id", ASCENDING), ("updated_at", DESCENDING)], "(user_id, updated_at)"
    )
    await _create_index(project_bullets_coll, [("tags", ASCENDING)], "tags")

    logger.info("Database index initialization completed")
