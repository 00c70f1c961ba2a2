"""FastAPI app: serves harvested newsletter articles and the pipeline config."""

import logging
from dataclasses import asdict

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from config import settings
from newsmail.exceptions import EmailAuthError, NoMatchingMessagesError, PipelineError
from newsmail.gmail_source import GmailMailSource
from newsmail.mail_source import MailSource
from newsmail.pipeline import run_pipeline
from newsmail.storage import (
    KeyValueStore,
    SqliteKeyValueStore,
    load_pipeline_config,
    save_pipeline_config,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Newsmail", description="Newsletter article harvester")


def _get_store() -> KeyValueStore:
    return SqliteKeyValueStore(settings.db_path)


def _get_source() -> MailSource:
    return GmailMailSource.from_settings()


# --- API: Articles ---

@app.get("/api/articles")
async def api_articles(
    label: str | None = Query(default=None),
    query: str | None = Query(default=None),
    exclude_seen: bool = Query(default=True),
    max_messages: int | None = Query(default=None),
    max_items: int | None = Query(default=None),
):
    """Harvest, rank and return articles from the configured label."""
    try:
        source = _get_source()
        articles = await run_pipeline(
            source,
            _get_store(),
            label_name=label,
            query=query,
            max_messages=max_messages,
            max_items=max_items,
            exclude_seen=exclude_seen,
        )
    except EmailAuthError as e:
        logger.warning("Gmail authentication failed: %s", e)
        return JSONResponse({"error": str(e)}, status_code=401)
    except NoMatchingMessagesError as e:
        return JSONResponse({"error": str(e)}, status_code=404)
    except PipelineError as e:
        logger.error("Article pipeline failed: %s", e)
        return JSONResponse({"error": str(e)}, status_code=500)

    return JSONResponse({
        "articles": [a.to_dict() for a in articles],
        "total": len(articles),
    })


# --- API: Config ---

@app.get("/api/config")
async def api_get_config():
    """Get the stored pipeline configuration (defaults filled in)."""
    return JSONResponse(asdict(load_pipeline_config(_get_store())))


@app.post("/api/config")
async def api_save_config(request: Request):
    """Merge a partial update into the pipeline configuration."""
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse({"error": "Config body is not valid JSON."}, status_code=400)
    if not isinstance(body, dict):
        return JSONResponse({"error": "Config must be a JSON object."}, status_code=400)
    config = save_pipeline_config(_get_store(), body)
    return JSONResponse(asdict(config))


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {
        "status": "ok",
        "gmail_configured": bool(settings.gmail_token_json),
    }
