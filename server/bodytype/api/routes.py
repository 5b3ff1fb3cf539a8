"""
API Routes Module
=================

Flask API routes for the body type assessment server.
"""

from typing import Optional, Tuple

from flask import jsonify, request
from loguru import logger
from werkzeug.exceptions import HTTPException

from config import Credentials

from ..errors import (
    AssessmentError,
    ClassificationError,
    ClassificationTimeout,
    ConfigurationMissing,
    GenerationError,
    GenerationTimeout,
    ImageReadError,
    InvalidTransition,
    RunAbandoned,
)
from ..models import QuestionnaireRecord
from ..pipeline import AssessmentOrchestrator, AssessmentSessions

# Most specific first
ERROR_STATUS = (
    (ConfigurationMissing, 400),
    (ImageReadError, 400),
    (InvalidTransition, 409),
    (RunAbandoned, 409),
    (ClassificationTimeout, 504),
    (GenerationTimeout, 504),
    (ClassificationError, 502),
    (GenerationError, 502),
)


def _error_response(exc: AssessmentError, orchestrator: Optional[AssessmentOrchestrator] = None):
    status = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 500)
    body = exc.to_dict()
    if orchestrator is not None:
        body["state"] = orchestrator.state.value
    return jsonify(body), status


def _bad_request(message: str):
    return jsonify({"error": "bad_request", "message": message}), 400


def _credentials_from(data: Optional[dict]) -> Optional[Credentials]:
    if not isinstance(data, dict):
        return None
    gemini_key = data.get("geminiKey") or data.get("gemini_api_key") or ""
    openai_key = data.get("openaiKey") or data.get("openai_api_key") or ""
    if not gemini_key and not openai_key:
        return None
    return Credentials(gemini_api_key=gemini_key, openai_api_key=openai_key)


def register_routes(app, sessions: AssessmentSessions):
    """
    Register all API routes with the Flask app.

    Args:
        app: Flask application instance
        sessions: Registry of assessment sessions
    """

    def _lookup(session_id: str) -> Tuple[Optional[AssessmentOrchestrator], Optional[tuple]]:
        orchestrator = sessions.get(session_id)
        if orchestrator is None:
            return None, (jsonify({"error": "not_found", "message": "Unknown session"}), 404)
        return orchestrator, None

    @app.route("/sessions", methods=["POST"])
    def create_session():
        """
        Start an assessment session.

        Request JSON (optional):
            {"geminiKey": "...", "openaiKey": "..."}

        Without keys, credentials saved in the environment are used; if none
        exist the session waits in awaiting_configuration.
        """
        credentials = _credentials_from(request.get_json(silent=True))
        try:
            session_id, orchestrator = sessions.create(credentials)
        except AssessmentError as exc:
            return _error_response(exc)
        body = orchestrator.snapshot()
        body["sessionId"] = session_id
        return jsonify(body), 201

    @app.route("/sessions/<session_id>", methods=["GET"])
    def get_session(session_id):
        """Current pipeline state, questionnaire step and result."""
        orchestrator, error = _lookup(session_id)
        if error:
            return error
        return jsonify(orchestrator.snapshot())

    @app.route("/sessions/<session_id>", methods=["DELETE"])
    def delete_session(session_id):
        if not sessions.remove(session_id):
            return jsonify({"error": "not_found", "message": "Unknown session"}), 404
        return jsonify({"status": "ok"})

    @app.route("/sessions/<session_id>/config", methods=["POST"])
    def configure_session(session_id):
        """
        Supply credentials to a session waiting for configuration.

        Request JSON:
            {"geminiKey": "...", "openaiKey": "..."}
        """
        orchestrator, error = _lookup(session_id)
        if error:
            return error
        credentials = _credentials_from(request.get_json(silent=True))
        try:
            orchestrator.configure(credentials)
        except AssessmentError as exc:
            return _error_response(exc, orchestrator)
        return jsonify(orchestrator.snapshot())

    @app.route("/sessions/<session_id>/questionnaire", methods=["GET"])
    def get_questionnaire(session_id):
        orchestrator, error = _lookup(session_id)
        if error:
            return error
        return jsonify(orchestrator.questionnaire.snapshot())

    @app.route("/sessions/<session_id>/questionnaire/answers", methods=["PUT"])
    def put_answer(session_id):
        """
        Set or toggle an answer.

        Request JSON:
            {"field": "dietType", "value": "Vegan"}
            {"field": "allergies", "option": "Nuts", "selected": true}
        """
        orchestrator, error = _lookup(session_id)
        if error:
            return error
        data = request.get_json(silent=True) or {}
        if "field" not in data:
            return _bad_request("Missing field")
        try:
            if "option" in data:
                orchestrator.toggle(data["field"], data["option"], data.get("selected"))
            elif "value" in data:
                orchestrator.answer(data["field"], data["value"])
            else:
                return _bad_request("Provide a value or an option")
        except AssessmentError as exc:
            return _error_response(exc, orchestrator)
        except (KeyError, ValueError) as exc:
            return _bad_request(str(exc))
        return jsonify(orchestrator.questionnaire.snapshot())

    @app.route("/sessions/<session_id>/questionnaire/advance", methods=["POST"])
    def advance_questionnaire(session_id):
        orchestrator, error = _lookup(session_id)
        if error:
            return error
        try:
            orchestrator.advance_questionnaire()
        except AssessmentError as exc:
            return _error_response(exc, orchestrator)
        return jsonify(orchestrator.snapshot())

    @app.route("/sessions/<session_id>/questionnaire/retreat", methods=["POST"])
    def retreat_questionnaire(session_id):
        orchestrator, error = _lookup(session_id)
        if error:
            return error
        try:
            orchestrator.retreat_questionnaire()
        except AssessmentError as exc:
            return _error_response(exc, orchestrator)
        return jsonify(orchestrator.snapshot())

    @app.route("/sessions/<session_id>/questionnaire", methods=["POST"])
    def submit_questionnaire(session_id):
        """Submit a whole questionnaire record using the wire field names."""
        orchestrator, error = _lookup(session_id)
        if error:
            return error
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return _bad_request("Expected a JSON object")
        try:
            orchestrator.submit_questionnaire(QuestionnaireRecord.from_dict(data))
        except AssessmentError as exc:
            return _error_response(exc, orchestrator)
        except (KeyError, ValueError) as exc:
            return _bad_request(str(exc))
        return jsonify(orchestrator.snapshot())

    @app.route("/sessions/<session_id>/assessment", methods=["POST"])
    async def submit_assessment(session_id):
        """
        Analyze one photo.

        Request: multipart form with exactly one ``image`` file.

        Response JSON:
            {"bodyType": ..., "confidence": ..., "breakdown": {...},
             "recommendations": [...], "description": ..., "personalizedPlan": ...}
        """
        orchestrator, error = _lookup(session_id)
        if error:
            return error
        images = request.files.getlist("image")
        if len(images) != 1:
            return _bad_request("Upload exactly one image")
        try:
            result = await orchestrator.submit_image(images[0])
        except AssessmentError as exc:
            return _error_response(exc, orchestrator)
        return jsonify(result.to_dict())

    @app.route("/sessions/<session_id>/assessment", methods=["DELETE"])
    def abandon_assessment(session_id):
        orchestrator, error = _lookup(session_id)
        if error:
            return error
        abandoned = orchestrator.abandon()
        return jsonify({"abandoned": abandoned, "state": orchestrator.state.value})

    @app.route("/sessions/<session_id>/assessment/recover", methods=["POST"])
    def recover_assessment(session_id):
        orchestrator, error = _lookup(session_id)
        if error:
            return error
        try:
            orchestrator.recover()
        except AssessmentError as exc:
            return _error_response(exc, orchestrator)
        return jsonify(orchestrator.snapshot())

    @app.route("/sessions/<session_id>/restart", methods=["POST"])
    def restart_session(session_id):
        orchestrator, error = _lookup(session_id)
        if error:
            return error
        try:
            orchestrator.restart()
        except AssessmentError as exc:
            return _error_response(exc, orchestrator)
        return jsonify(orchestrator.snapshot())

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        """Log unexpected failures and return a JSON 500."""
        if isinstance(exc, HTTPException):
            return exc
        logger.exception("Unhandled error on {} {}", request.method, request.path)
        return jsonify({"error": "internal_error", "message": str(exc)}), 500

    @app.route("/health")
    def health():
        """Health check endpoint."""
        return jsonify({
            "status": "healthy",
            "sessions": len(sessions),
        })
