"""
API routes for the Business Card Scanning API.

Flask REST API endpoints for scanning cards, saving confirmed contacts and
exporting them.
"""

import logging
import os
import threading
import uuid
from pathlib import Path

from flask import Blueprint, Response, current_app, jsonify, request
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from cardscan.exceptions import ExportEmptyError, MissingInputError, PersistenceFailure
from cardscan.export import EXPORT_FILENAME, contacts_to_csv
from cardscan.pipeline import CardScanPipeline
from cardscan.storage import ContactStore
from config import Config

logger = logging.getLogger(__name__)

# Create Blueprint
api_bp = Blueprint("api", __name__, url_prefix="/api")

UPLOAD_FIELD = "cardImage"

# Guards lazy creation of the per-app pipeline and store
_init_lock = threading.Lock()


def _config():
    return current_app.config.get("CONFIG_CLASS", Config)


def get_pipeline() -> CardScanPipeline:
    """Get or create the app's pipeline instance.

    Returns:
        CardScanPipeline instance
    """
    pipeline = current_app.extensions.get("card_pipeline")
    if pipeline is not None:
        return pipeline

    with _init_lock:
        pipeline = current_app.extensions.get("card_pipeline")
        if pipeline is None:
            config = _config()
            pipeline = CardScanPipeline(
                settings=config.extraction_settings(),
                ocr_languages=config.OCR_LANGUAGES,
                ocr_gpu=config.OCR_GPU,
                model_dir=config.OCR_MODEL_DIR
            )
            current_app.extensions["card_pipeline"] = pipeline
            logger.info("Pipeline initialized")
    return pipeline


def get_store() -> ContactStore:
    """Get or create the app's contact store."""
    store = current_app.extensions.get("contact_store")
    if store is not None:
        return store

    with _init_lock:
        store = current_app.extensions.get("contact_store")
        if store is None:
            store = ContactStore(_config().DATABASE_URL)
            current_app.extensions["contact_store"] = store
    return store


def _get_upload() -> FileStorage:
    """Return the uploaded card image.

    Raises:
        MissingInputError: No file field, or an empty filename
    """
    file = request.files.get(UPLOAD_FIELD)
    if file is None:
        raise MissingInputError("No image uploaded")
    if file.filename == "":
        raise MissingInputError("No file selected")
    return file


def _string_list(value) -> list:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) for v in value if v]


@api_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint.

    Returns:
        JSON with health status
    """
    return jsonify({
        "success": True,
        "status": "healthy",
        "message": "Business Card Scanning API is running",
        "version": "1.0.0"
    }), 200


@api_bp.route("/status", methods=["GET"])
def get_status():
    """Get API and pipeline status.

    Returns:
        JSON with status information
    """
    try:
        pipeline = get_pipeline()
        return jsonify({
            "success": True,
            "data": {
                "api_status": "running",
                "pipeline_status": pipeline.get_status()
            }
        }), 200

    except Exception as e:
        logger.error(f"Error getting status: {str(e)}")
        return jsonify({
            "success": False,
            "error": str(e)
        }), 500


@api_bp.route("/card/scan", methods=["POST"])
def scan_card():
    """Scan a single business card image.

    Expects:
        - multipart/form-data with 'cardImage' field

    Returns:
        JSON with emails, phones, names and companies
    """
    try:
        file = _get_upload()
    except MissingInputError as e:
        return jsonify({
            "success": False,
            "error": str(e)
        }), 400

    if not _config().is_allowed_file(file.filename):
        return jsonify({
            "success": False,
            "error": f"File type not allowed. Allowed: {', '.join(sorted(Config.ALLOWED_EXTENSIONS))}"
        }), 400

    filename = f"{uuid.uuid4().hex}_{secure_filename(file.filename)}"
    upload_path = Path(_config().UPLOAD_FOLDER) / filename

    try:
        file.save(str(upload_path))
        logger.info(f"📸 Scanning uploaded file: {filename}")

        result = get_pipeline().process_image(upload_path)
        if not result.get("success"):
            return jsonify({
                "success": False,
                "error": result.get("error", "OCR failed")
            }), 500

        return jsonify({
            "success": True,
            "data": result["data"]
        }), 200

    except Exception as e:
        logger.error(f"❌ Error in scan_card: {str(e)}", exc_info=True)
        return jsonify({
            "success": False,
            "error": str(e)
        }), 500

    finally:
        # Clean up uploaded file
        try:
            os.remove(upload_path)
        except OSError as e:
            logger.warning(f"Failed to clean up file: {str(e)}")


@api_bp.route("/card/parse-ocr", methods=["POST"])
def parse_ocr():
    """Extract fields from OCR output (skip OCR).

    Expects:
        - JSON body with 'text' and 'lines' fields

    Returns:
        JSON with emails, phones, names and companies
    """
    data = request.get_json(silent=True)

    if not isinstance(data, dict):
        return jsonify({
            "success": False,
            "error": "No OCR data provided. Send JSON with 'text' and 'lines' fields."
        }), 400

    result = get_pipeline().process_document(data)
    return jsonify({
        "success": True,
        "data": result["data"]
    }), 200


@api_bp.route("/card/save", methods=["POST"])
def save_contact():
    """Save a contact confirmed by the user.

    Expects:
        - JSON body with 'name', optional 'company', 'emails', 'phones'

    Returns:
        JSON with the stored contact
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    try:
        contact = get_store().save(
            name=data.get("name"),
            company=data.get("company"),
            emails=_string_list(data.get("emails")),
            phones=_string_list(data.get("phones")),
            is_verified=True,
            confidence_score=100
        )
    except PersistenceFailure as e:
        logger.error(f"Database save failed: {str(e)}")
        return jsonify({
            "success": False,
            "error": "Database Save Failed"
        }), 500

    return jsonify({
        "success": True,
        "message": "Contact Saved!",
        "contact": contact
    }), 201


@api_bp.route("/card/export", methods=["GET"])
def export_contacts():
    """Download all stored contacts as CSV, newest first.

    Returns:
        CSV file download
    """
    try:
        csv_text = contacts_to_csv(get_store().list_contacts())
    except ExportEmptyError as e:
        return Response(str(e), status=404, mimetype="text/plain")
    except Exception as e:
        logger.error(f"Export Error: {str(e)}", exc_info=True)
        return Response("Server Error during Export", status=500, mimetype="text/plain")

    return Response(
        csv_text,
        status=200,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'}
    )
