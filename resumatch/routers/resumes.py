import asyncio
import re
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Header, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse

from resumatch.helpers.parsing import ParsedDocument, is_valid_file_type, parse_upload
from resumatch.models.models import CorpusEntry, PIIData
from resumatch.models.payloads import AskPayload
from resumatch.models.response import AskResponse, ResumePage, ResumeView, UploadedResume, UploadResponse
from resumatch.models.schemas import ResumeModel
from resumatch.models.settings import load_scoring_settings
from resumatch.services.auth import get_current_user, is_recruiter, require_role
from resumatch.services.db import resumes_coll
from resumatch.services.embeddings import generate_embedding
from resumatch.services.idempotency import idempotency_cache
from resumatch.services.pii import extract_pii, redact_pii
from resumatch.services.search import semantic_search
from resumatch.utils.config import MAX_UPLOAD_BYTES, MAX_UPLOAD_FILES
from resumatch.utils.exceptions import AuthorizationError, ProcessingError, ValidationError
from resumatch.utils.logging_config import get_logger, log_api_call, PerformanceMonitor

router = APIRouter()
logger = get_logger(__name__)

SCORING = load_scoring_settings()

VIEW_PROJECTION = {"_id": 0, "embedding": 0}


def ingest_upload(data: bytes, filename: str, user_id: str, idempotency_key: Optional[str]) -> List[ResumeModel]:
    """Parse an uploaded file and build one resume per extracted document.

    Embedding and PII are computed here, once per document.
    """
    parsed = parse_upload(data, filename)
    docs = parsed if isinstance(parsed, list) else [ParsedDocument(filename, parsed)]
    return [
        ResumeModel(
            id=str(uuid.uuid4()),
            user_id=user_id,
            filename=doc.filename,
            text=doc.text,
            embedding=generate_embedding(doc.text),
            pii=extract_pii(doc.text).model_dump(),
            idempotency_key=idempotency_key,
        )
        for doc in docs
    ]


def visible_text(doc: Dict[str, Any], recruiter: bool) -> str:
    if recruiter:
        return doc.get("text", "")
    return redact_pii(doc.get("text", ""), doc.get("pii"))


def to_view(doc: Dict[str, Any], recruiter: bool) -> ResumeView:
    return ResumeView(
        id=doc["id"],
        filename=doc["filename"],
        text=visible_text(doc, recruiter),
        pii=PIIData(**(doc.get("pii") or {})) if recruiter else None,
        created_at=doc["created_at"],
    )


async def replay_upload(user_id: str, key: str) -> Optional[Dict[str, Any]]:
    """Response of an earlier upload made with the same Idempotency-Key"""
    cached = idempotency_cache.get(user_id, key)
    if cached is not None:
        return cached

    previous = await resumes_coll.find(
        {"user_id": user_id, "idempotency_key": key}, {"_id": 0, "id": 1, "filename": 1, "text": 1}
    ).to_list(length=None)
    if not previous:
        return None

    response = UploadResponse(
        message="Resume already uploaded (idempotent)",
        resumes=[UploadedResume(id=r["id"], filename=r["filename"], textLength=len(r.get("text", ""))) for r in previous],
    ).model_dump()
    idempotency_cache.store(user_id, key, response)
    return response


@router.post("/resumes", response_model=UploadResponse, status_code=201)
@log_api_call("upload_resumes")
async def upload_resumes(
    resumes: Optional[List[UploadFile]] = File(None),
    idempotency_key: Optional[str] = Header(None),
    user: Dict[str, Any] = Depends(require_role("USER")),
):
    """Upload resume files (PDF, DOCX, TXT, or a ZIP of them)"""
    if idempotency_key:
        replay = await replay_upload(user["id"], idempotency_key)
        if replay is not None:
            logger.info(f"Replaying upload for idempotency key {idempotency_key}")
            return JSONResponse(content=replay)

    if not resumes:
        raise ValidationError("No files uploaded", field="resumes")
    if len(resumes) > MAX_UPLOAD_FILES:
        raise ValidationError(f"At most {MAX_UPLOAD_FILES} files per upload", field="resumes", value=len(resumes))
    for upload in resumes:
        if not is_valid_file_type(upload.filename or ""):
            raise ValidationError(
                "Invalid file type. Only PDF, DOCX, TXT, and ZIP files are allowed.",
                field="resumes", value=upload.filename,
            )

    loop = asyncio.get_running_loop()
    results: List[UploadedResume] = []
    for upload in resumes:
        data = await upload.read()
        if len(data) > MAX_UPLOAD_BYTES:
            raise ValidationError(f"{upload.filename} exceeds the {MAX_UPLOAD_BYTES} byte limit", field="resumes")

        try:
            built = await loop.run_in_executor(None, ingest_upload, data, upload.filename, user["id"], idempotency_key)
        except ProcessingError as e:
            logger.error(f"Error processing {upload.filename}: {e.message}")
            continue

        for resume in built:
            await resumes_coll.insert_one(resume.model_dump())
            results.append(UploadedResume(id=resume.id, filename=resume.filename, textLength=len(resume.text)))

    response = UploadResponse(message=f"Successfully uploaded {len(results)} resume(s)", resumes=results)

    if idempotency_key:
        idempotency_cache.purge_expired()
        idempotency_cache.store(user["id"], idempotency_key, response.model_dump())

    return response


@router.get("/resumes", response_model=ResumePage)
async def list_resumes(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    q: Optional[str] = Query(None, description="Case-insensitive keyword filter"),
    user: Dict[str, Any] = Depends(get_current_user),
):
    """Page through visible resumes; users only see their own, with PII redacted"""
    recruiter = is_recruiter(user)
    query: Dict[str, Any] = {}
    if not recruiter:
        query["user_id"] = user["id"]
    if q:
        query["text"] = {"$regex": re.escape(q), "$options": "i"}

    total = await resumes_coll.count_documents(query)
    cursor = resumes_coll.find(query, VIEW_PROJECTION).sort("created_at", -1).skip(offset).limit(limit)
    docs = await cursor.to_list(length=None)

    return ResumePage(
        items=[to_view(doc, recruiter) for doc in docs],
        next_offset=offset + limit if offset + limit < total else None,
    )


@router.get("/resumes/{resume_id}", response_model=ResumeView)
async def get_resume(resume_id: str, user: Dict[str, Any] = Depends(get_current_user)):
    """Fetch one resume, subject to the same visibility rules as the listing"""
    doc = await resumes_coll.find_one({"id": resume_id}, VIEW_PROJECTION)
    if not doc:
        raise HTTPException(status_code=404, detail="Resume not found")

    recruiter = is_recruiter(user)
    if not recruiter and doc.get("user_id") != user["id"]:
        raise AuthorizationError("You can only access your own resumes", resource=resume_id)

    return to_view(doc, recruiter)


@router.post("/ask", response_model=AskResponse)
@log_api_call("ask")
async def ask(payload: AskPayload, user: Dict[str, Any] = Depends(get_current_user)):
    """Semantic search over the caller's visible resumes"""
    recruiter = is_recruiter(user)
    query = {} if recruiter else {"user_id": user["id"]}
    docs = await resumes_coll.find(
        query, {"_id": 0, "id": 1, "text": 1, "embedding": 1, "pii": 1}
    ).to_list(length=None)

    corpus = [
        CorpusEntry(id=d["id"], text=visible_text(d, recruiter), embedding=d.get("embedding") or [])
        for d in docs
    ]

    loop = asyncio.get_running_loop()
    with PerformanceMonitor("semantic_search", logger):
        hits = await loop.run_in_executor(None, semantic_search, payload.query, corpus, payload.k, SCORING)

    return AskResponse(snippets=hits)
