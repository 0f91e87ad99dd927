import asyncio
import uuid
from datetime import datetime
from typing import List

import motor.motor_asyncio
from pymongo import ASCENDING, DESCENDING

from resumatch.models.models import MatchCandidate
from resumatch.models.schemas import MatchResultModel
from resumatch.utils.config import MONGO_DETAILS, DB_NAME
from resumatch.utils.logging_config import get_logger

logger = get_logger(__name__)

logger.info(f"Initializing MongoDB connection to database: {DB_NAME}")

# motor connects lazily, so building the client never blocks on the server
client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_DETAILS)
db = client[DB_NAME]

# Collections
users_coll = db["users"]
resumes_coll = db["resumes"]
jobs_coll = db["jobs"]
match_results_coll = db["match_results"]
tokens_coll = db["tokens"]

INDEXES = [
    (users_coll, [("id", ASCENDING)], True),
    (users_coll, [("email", ASCENDING)], True),
    (resumes_coll, [("id", ASCENDING)], True),
    (resumes_coll, [("user_id", ASCENDING), ("created_at", DESCENDING)], False),
    (resumes_coll, [("user_id", ASCENDING), ("idempotency_key", ASCENDING)], False),
    (jobs_coll, [("id", ASCENDING)], True),
    (jobs_coll, [("created_at", DESCENDING)], False),
    # one stored result per (job, resume) pair; re-matching overwrites it
    (match_results_coll, [("job_id", ASCENDING), ("resume_id", ASCENDING)], True),
    (tokens_coll, [("token", ASCENDING)], True),
]


async def init_indexes():
    """Index initialization for collections."""
    logger.info("Starting database index initialization")

    for coll, keys, unique in INDEXES:
        label = f"{coll.name}.({', '.join(k for k, _ in keys)})"
        try:
            await coll.create_index(keys, unique=unique)
            logger.debug(f"Created {'unique ' if unique else ''}index on {label}")
        except Exception as e:
            if "already exists" in str(e).lower():
                logger.debug(f"Index on {label} already exists")
            else:
                logger.warning(f"Could not create index on {label}: {e}")

    logger.info("Database index initialization completed")


async def ping() -> bool:
    await client.admin.command("ping")
    return True


def match_result_update(job_id: str, candidate: MatchCandidate, now: datetime) -> dict:
    doc = MatchResultModel(
        id=str(uuid.uuid4()),
        job_id=job_id,
        resume_id=candidate.resume_id,
        score=candidate.match_score,
        evidence=candidate.evidence_snippets,
        missing=candidate.missing_requirements,
        created_at=now,
        updated_at=now,
    ).model_dump()
    on_insert = {"id": doc.pop("id"), "created_at": doc.pop("created_at")}
    return {"$set": doc, "$setOnInsert": on_insert}


async def upsert_match_results(job_id: str, candidates: List[MatchCandidate]):
    """Store one result per (job, resume); existing pairs are overwritten"""
    now = datetime.utcnow()
    await asyncio.gather(*[
        match_results_coll.update_one(
            {"job_id": job_id, "resume_id": c.resume_id},
            match_result_update(job_id, c, now),
            upsert=True,
        )
        for c in candidates
    ])
    logger.debug(f"Upserted {len(candidates)} match results for job {job_id}")


def to_dict(doc):
    if not doc:
        return None
    doc = dict(doc)
    doc.pop("_id", None)
    return doc
