"""Flask route handlers for the share API."""

import asyncio
import logging

from flask import Blueprint, current_app, jsonify, request

from ..extraction.urls import InvalidUrlError, validate_submitted_url
from ..grouping.service import LinkNotFoundError
from ..storage.models import BatchItemResult, IngestResult

logger = logging.getLogger(__name__)

bp = Blueprint("api", __name__)


def get_pipeline():
    """Get ingestion pipeline from app config."""
    return current_app.config["PIPELINE"]


def _error(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


@bp.get("/share")
def share_info():
    """Service info for share-sheet shortcuts."""
    return jsonify(
        {
            "service": "Parasight Share API",
            "usage": "POST { url: string, note?: string }",
        }
    )


@bp.post("/share")
def share():
    """Ingest one shared URL."""
    body = request.get_json(silent=True) or {}
    url = body.get("url")
    if not url or not isinstance(url, str):
        return _error("Missing 'url' in request body", 400)

    try:
        url = validate_submitted_url(url)
    except InvalidUrlError as e:
        return _error(str(e), 400)

    note = body.get("note") or current_app.config["APP_CONFIG"].share_note
    logger.info(f"Processing shared URL: {url}")

    result = asyncio.run(get_pipeline().process_one(url, note))
    if not result.success:
        return _error(result.error or "Processing failed", 500)

    message = (
        f"Saved {len(result.expanded_urls)} link(s) from tweet"
        if result.expanded_urls
        else "Link saved successfully"
    )
    payload = {"success": True, "message": message, "linkId": result.link_id}
    if result.expanded_urls:
        payload["extractedUrls"] = result.expanded_urls
    return jsonify(payload)


@bp.post("/batch")
def batch():
    """Ingest a list of URLs, one result per URL in input order."""
    body = request.get_json(silent=True) or {}
    urls = body.get("urls")
    if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
        return _error("'urls' must be a list of strings", 400)
    note = body.get("note") or None

    async def run() -> list[BatchItemResult]:
        pipeline = get_pipeline()
        results = []
        for url in urls:
            try:
                valid = validate_submitted_url(url)
            except InvalidUrlError as e:
                results.append(
                    BatchItemResult(url=url, result=IngestResult(success=False, error=str(e)))
                )
                continue
            results.append(BatchItemResult(url=url, result=await pipeline.process_one(valid, note)))
        return results

    results = asyncio.run(run())
    return jsonify([item.to_dict() for item in results])


@bp.post("/group")
def group():
    """Group two links under one label."""
    body = request.get_json(silent=True) or {}
    link1_id = body.get("link1Id")
    link2_id = body.get("link2Id")
    if not isinstance(link1_id, int) or not isinstance(link2_id, int):
        return _error("'link1Id' and 'link2Id' must be integers", 400)

    try:
        group_name = asyncio.run(current_app.config["GROUPING"].group(link1_id, link2_id))
    except LinkNotFoundError as e:
        return _error(str(e), 404)

    return jsonify({"success": True, "groupName": group_name})


@bp.get("/links/<int:link_id>")
def link_detail(link_id: int):
    """Single link record."""
    link = get_pipeline().db.get_link_by_id(link_id)
    if link is None:
        return _error("Link not found", 404)
    return jsonify(link.to_dict())
