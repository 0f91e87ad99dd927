import asyncio
import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response

from resumatch.models.models import CorpusEntry, JobProfile
from resumatch.models.payloads import JobCreatePayload, JobMatchPayload
from resumatch.models.response import JobMatchResponse, JobPage
from resumatch.models.schemas import JobModel
from resumatch.models.settings import load_scoring_settings
from resumatch.services.auth import RECRUITER_ROLES, get_current_user, require_role
from resumatch.services.db import jobs_coll, match_results_coll, resumes_coll, upsert_match_results, users_coll
from resumatch.services.matching import match_resumes
from resumatch.utils.exceptions import AuthorizationError, ExceptionContext
from resumatch.utils.logging_config import get_logger, log_api_call, PerformanceMonitor

router = APIRouter()
logger = get_logger(__name__)

SCORING = load_scoring_settings()


async def load_job(job_id: str) -> Dict[str, Any]:
    job = await jobs_coll.find_one({"id": job_id}, {"_id": 0})
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.post("/jobs", response_model=JobModel, status_code=201)
@log_api_call("create_job")
async def create_job(payload: JobCreatePayload, user: Dict[str, Any] = Depends(require_role(*RECRUITER_ROLES))):
    """Create a job posting owned by the caller"""
    job = JobModel(id=str(uuid.uuid4()), user_id=user["id"], **payload.model_dump())
    await jobs_coll.insert_one(job.model_dump())
    logger.info(f"Job {job.id} created by {user['id']}")
    return job


@router.get("/jobs", response_model=JobPage)
async def list_jobs(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: Dict[str, Any] = Depends(get_current_user),
):
    """Page through all jobs, newest first"""
    total = await jobs_coll.count_documents({})
    cursor = jobs_coll.find({}, {"_id": 0}).sort("created_at", -1).skip(offset).limit(limit)
    jobs = await cursor.to_list(length=None)
    return JobPage(
        items=[JobModel(**j) for j in jobs],
        next_offset=offset + limit if offset + limit < total else None,
    )


@router.get("/jobs/{job_id}", response_model=JobModel)
async def get_job(job_id: str, user: Dict[str, Any] = Depends(get_current_user)):
    return JobModel(**await load_job(job_id))


@router.delete("/jobs/{job_id}", status_code=204)
@log_api_call("delete_job")
async def delete_job(job_id: str, user: Dict[str, Any] = Depends(require_role(*RECRUITER_ROLES))):
    """Delete a job and its stored match results; recruiters may only delete their own"""
    job = await load_job(job_id)
    if user["role"] != "ADMIN" and job.get("user_id") != user["id"]:
        raise AuthorizationError("You can only delete jobs you created", resource=job_id)

    await match_results_coll.delete_many({"job_id": job_id})
    await jobs_coll.delete_one({"id": job_id})
    logger.info(f"Job {job_id} deleted by {user['id']}")
    return Response(status_code=204)


@router.post("/jobs/{job_id}/match", response_model=JobMatchResponse)
@log_api_call("match_job")
async def match_job(
    job_id: str,
    payload: Optional[JobMatchPayload] = Body(None),
    user: Dict[str, Any] = Depends(require_role(*RECRUITER_ROLES)),
):
    """Rank every stored resume against the job and persist the top N"""
    top_n = payload.top_n if payload else JobMatchPayload().top_n
    job = await load_job(job_id)

    resumes = await resumes_coll.find(
        {}, {"_id": 0, "id": 1, "user_id": 1, "filename": 1, "text": 1, "embedding": 1}
    ).to_list(length=None)

    owner_ids = list({r["user_id"] for r in resumes if r.get("user_id")})
    owners = {}
    if owner_ids:
        found = await users_coll.find({"id": {"$in": owner_ids}}, {"_id": 0, "id": 1, "name": 1, "email": 1}).to_list(length=None)
        owners = {u["id"]: u for u in found}

    corpus = []
    for r in resumes:
        owner = owners.get(r.get("user_id"), {})
        corpus.append(CorpusEntry(
            id=r["id"],
            text=r.get("text", ""),
            embedding=r.get("embedding") or [],
            candidate_name=owner.get("name"),
            candidate_email=owner.get("email"),
            filename=r.get("filename"),
        ))

    profile = JobProfile(title=job["title"], description=job["description"], requirements=job.get("requirements", []))

    loop = asyncio.get_running_loop()
    with PerformanceMonitor(f"match job {job_id}", logger):
        candidates = await loop.run_in_executor(None, match_resumes, profile, corpus, top_n, SCORING)

    with ExceptionContext("persist match results", logger, job_id=job_id):
        await upsert_match_results(job_id, candidates)
    logger.info(f"Matched {len(corpus)} resumes against job {job_id}, kept {len(candidates)}")
    return JobMatchResponse(candidates=candidates)
