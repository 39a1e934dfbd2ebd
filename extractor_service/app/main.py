import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import settings
from .db import JobStore, build_job_store
from .errors import ExtractionError
from .models import (
    ExtractionJob, ExtractRequest, ExtractResponse, JobStatus, JobStatusResponse,
    RedditCredentials, ValidateResponse,
)
from .pipeline import ExtractionPipeline
from .scrapers.reddit_client import RedditClient
from .text_formatter import suggested_filename

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(levelname)s:%(name)s:%(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    store = build_job_store()
    await store.init()
    app.state.store = store
    logger.info(f"[Main] Job store: {type(store).__name__}")
    yield
    await store.close()

app = FastAPI(title="Reddit Comment Extractor", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Dependencies ─────────────────────────────────────────────────────

def get_store(request: Request) -> JobStore:
    return request.app.state.store

def get_reddit_client() -> RedditClient:
    return RedditClient()

def get_pipeline(
    store: JobStore = Depends(get_store),
    reddit: RedditClient = Depends(get_reddit_client),
) -> ExtractionPipeline:
    return ExtractionPipeline(store, reddit)

async def get_completed_job(job_id: int, store: JobStore = Depends(get_store)) -> ExtractionJob:
    job = await store.get(job_id)
    if not job or job.status != JobStatus.COMPLETED or job.json_data is None or job.text_data is None:
        raise HTTPException(status_code=404, detail="Job not found or not completed")
    return job

@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

# ── Routes ───────────────────────────────────────────────────────────

@app.post("/api/validate-credentials", response_model=ValidateResponse)
async def validate_credentials(req: RedditCredentials, pipeline: ExtractionPipeline = Depends(get_pipeline)):
    try:
        await pipeline.validate_credentials(req)
    except ExtractionError as e:
        logger.info(f"[Main] Credential check rejected: {e.message}")
        return JSONResponse(status_code=400, content={"valid": False, "error": e.message})
    return ValidateResponse(valid=True)

@app.post("/api/extract-comments", response_model=ExtractResponse)
async def extract_comments(req: ExtractRequest, pipeline: ExtractionPipeline = Depends(get_pipeline)):
    try:
        summary = await pipeline.extract(req.post_url, req.credentials())
    except ExtractionError as e:
        return JSONResponse(status_code=400, content={"success": False, "error": e.message})

    return ExtractResponse(
        job_id=summary.job_id,
        comment_count=summary.comment_count,
        post_title=summary.post_title,
    )

@app.get("/api/jobs/{job_id}", response_model=JobStatusResponse)
async def get_job(job_id: int, store: JobStore = Depends(get_store)):
    job = await store.get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse(
        job_id=job.id,
        post_url=job.post_url,
        status=job.status,
        comment_count=job.comment_count,
        error=job.error,
        created_at=job.created_at,
        completed_at=job.completed_at,
    )

def _attachment(job: ExtractionJob, extension: str) -> dict:
    title = (job.json_data or {}).get("post", {}).get("title")
    filename = suggested_filename(title, job.id, extension)
    return {"Content-Disposition": f'attachment; filename="{filename}"'}

@app.get("/api/download/{job_id}/json")
async def download_json(job: ExtractionJob = Depends(get_completed_job)):
    return JSONResponse(content=job.json_data, headers=_attachment(job, "json"))

@app.get("/api/download/{job_id}/text")
async def download_text(job: ExtractionJob = Depends(get_completed_job)):
    return PlainTextResponse(content=job.text_data, headers=_attachment(job, "txt"))

@app.get("/health")
async def health():
    return {"status": "ok"}
