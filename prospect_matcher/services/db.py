import motor.motor_asyncio
from pymongo import ASCENDING, DESCENDING
import os
from dotenv import load_dotenv

from prospect_matcher.utils.logging_config import get_logger

logger = get_logger(__name__)

load_dotenv()

MONGO_DETAILS = os.getenv("MONGO_DETAILS", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "prospect_matcher")

logger.info(f"Initializing MongoDB connection to database: {DB_NAME}")

# Client creation is lazy; no connection is made until the first operation
try:
    client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_DETAILS)
    db = client[DB_NAME]
    logger.info("MongoDB client initialized successfully")
except Exception as e:
    logger.error(f"Failed to initialize MongoDB client: {e}")
    raise

# Collections
prospects_coll = db["prospect"]
positions_coll = db["job_position"]
evaluations_coll = db["prospect_evaluation"]


async def _create_index(coll, keys, **kwargs):
    name = f"{coll.name}.({', '.join(k for k, _ in keys)})"
    try:
        await coll.create_index(keys, **kwargs)
        logger.debug(f"Created index on {name}")
    except Exception as e:
        if "already exists" in str(e).lower():
            logger.debug(f"Index on {name} already exists")
        else:
            logger.warning(f"Could not create index on {name}: {e}")


async def init_indexes():
    """Index initialization for collections."""
    logger.info("Starting database index initialization")

    await _create_index(prospects_coll, [("id", ASCENDING)], unique=True)
    await _create_index(prospects_coll, [("created_at", DESCENDING)])

    await _create_index(positions_coll, [("id", ASCENDING)], unique=True)
    await _create_index(positions_coll, [("is_open", ASCENDING), ("active", ASCENDING)])

    # One evaluation per (prospect, position); a second match updates it
    await _create_index(
        evaluations_coll, [("prospect_id", ASCENDING), ("job_position_id", ASCENDING)], unique=True
    )
    await _create_index(evaluations_coll, [("job_position_id", ASCENDING)])

    logger.info("Database index initialization completed")


def strip_mongo_id(doc):
    if not doc:
        return None
    doc = dict(doc)
    doc.pop("_id", None)
    return doc
