import logging
from typing import Any, Dict, Tuple
from flask import Blueprint, request, jsonify
from flasgger import swag_from
from pydantic import ValidationError

from al_selector.api import config, models, state
from al_selector.errors import (
    ActiveLearningError,
    ClassificationError,
    ClusteringMismatchError,
    InsufficientClassesError,
    InsufficientPoolError,
    InvalidClusterConfigError,
    SessionStateError,
)
from al_selector.patch import Patch, sort_by_distance

logger = logging.getLogger("api")
sessions_bp = Blueprint('sessions', __name__)

ERROR_RESPONSES: Dict[type, Tuple[str, int]] = {
    InsufficientClassesError: ('insufficient_classes', 400),
    InvalidClusterConfigError: ('invalid_cluster_config', 400),
    SessionStateError: ('session_not_seeded', 409),
    InsufficientPoolError: ('insufficient_pool', 409),
    ClusteringMismatchError: ('clustering_mismatch', 500),
    ClassificationError: ('classification_failed', 500),
}


@sessions_bp.errorhandler(ActiveLearningError)
def _active_learning_error(e: ActiveLearningError):
    code, status = ERROR_RESPONSES.get(type(e), ('active_learning_error', 500))
    if status >= 500:
        logger.error(f"{code}: {e}", exc_info=e)
    body: Dict[str, Any] = {"error": code, "detail": str(e)}
    if isinstance(e, InsufficientPoolError):
        body.update(required=e.required, available=e.available)
    return jsonify(body), status


def _parse(model_cls):
    raw = request.get_json(silent=True)
    if not isinstance(raw, dict):
        return None, (jsonify({"error": "Expected application/json object body"}), 400)
    try:
        return model_cls(**raw), None
    except ValidationError as ve:
        return None, (jsonify({"error": "validation_failed", "details": ve.errors(include_url=False)}), 400)


def _handle(session_id: str):
    handle = state.get_session(session_id)
    if handle is None:
        return None, (jsonify({"error": "session_not_found"}), 404)
    return handle, None


def _require_api_key():
    if config.API_KEY:
        key = request.headers.get("X-API-Key", "")
        if key != config.API_KEY:
            return jsonify({"error": "Unauthorized"}), 401
    return None


def _patch_out(p: Patch) -> Dict[str, Any]:
    out = p.to_dict()
    out['features'] = p.features.tolist()
    return out


def _summary(session_id: str, handle: state.SessionHandle) -> Dict[str, Any]:
    out = handle.session.summary()
    out.update(session_id=session_id, pending=handle.pending_count, rounds=handle.rounds)
    return out


@sessions_bp.before_request
def _auth():
    return _require_api_key()


@sessions_bp.route("/api/sessions", methods=["POST"])
def create_session():
    try:
        session_id = state.create_session(config.MAX_SESSIONS)
    except state.SessionLimitReached as e:
        return jsonify({"error": "session_limit", "detail": str(e)}), 503
    logger.info(f"Created session {session_id}")
    return jsonify({"session_id": session_id}), 201


@sessions_bp.route("/api/sessions/<session_id>", methods=["GET"])
def get_session(session_id: str):
    handle, err = _handle(session_id)
    if err:
        return err
    with handle.lock:
        return jsonify(_summary(session_id, handle))


@sessions_bp.route("/api/sessions/<session_id>", methods=["DELETE"])
def delete_session(session_id: str):
    if not state.drop_session(session_id):
        return jsonify({"error": "session_not_found"}), 404
    return jsonify({"deleted": session_id})


@sessions_bp.route("/api/sessions/<session_id>/seed", methods=["POST"])
@swag_from({
    'tags': ['sessions'],
    'consumes': ['application/json'],
    'parameters': [{
        'name': 'body', 'in': 'body', 'required': True,
        'schema': {
            'type': 'object',
            'properties': {
                'patches': {'type': 'array', 'items': {
                    'type': 'object',
                    'properties': {
                        'id': {'type': 'string'},
                        'features': {'type': 'array', 'items': {'type': 'number'}},
                        'label': {'type': 'integer'},
                    }
                }},
            }
        }
    }],
    'responses': {200: {'description': 'Session seeded and classifier trained'}}
})
def seed_session(session_id: str):
    handle, err = _handle(session_id)
    if err:
        return err
    parsed, err = _parse(models.SeedRequest)
    if err:
        return err
    with handle.lock:
        try:
            handle.session.set_seed_items([p.to_patch() for p in parsed.patches])
        except ValueError as e:
            return jsonify({"error": "invalid_patches", "detail": str(e)}), 400
        return jsonify(_summary(session_id, handle))


@sessions_bp.route("/api/sessions/<session_id>/unlabeled", methods=["POST"])
def add_unlabeled(session_id: str):
    handle, err = _handle(session_id)
    if err:
        return err
    parsed, err = _parse(models.UnlabeledRequest)
    if err:
        return err
    with handle.lock:
        handle.session.add_unlabeled_items(
            [Patch(id=p.id, features=p.features) for p in parsed.patches]
        )
        return jsonify(_summary(session_id, handle))


@sessions_bp.route("/api/sessions/<session_id>/batch", methods=["POST"])
@swag_from({
    'tags': ['sessions'],
    'consumes': ['application/json'],
    'parameters': [{
        'name': 'body', 'in': 'body', 'required': True,
        'schema': {'type': 'object', 'properties': {'size': {'type': 'integer', 'example': 5}}}
    }],
    'responses': {
        200: {'description': 'Most ambiguous, mutually diverse patches for labeling'},
        409: {'description': 'Session not seeded or unlabeled pool too small'},
    }
})
def select_batch(session_id: str):
    handle, err = _handle(session_id)
    if err:
        return err
    parsed, err = _parse(models.BatchRequest)
    if err:
        return err
    if parsed.size > config.BATCH_SIZE_LIMIT:
        return jsonify({"error": "batch_too_large", "limit": config.BATCH_SIZE_LIMIT}), 400
    with handle.lock:
        batch = handle.session.select_batch(parsed.size)
        for p in batch:
            handle.pending.setdefault(str(p.id), []).append(p)
        handle.rounds += 1
    if state.ROUNDS_TOTAL:
        state.ROUNDS_TOTAL.inc()
    if state.PATCHES_SELECTED:
        state.PATCHES_SELECTED.inc(len(batch))
    return jsonify({"patches": [_patch_out(p) for p in batch], "count": len(batch)})


@sessions_bp.route("/api/sessions/<session_id>/labels", methods=["POST"])
def submit_labels(session_id: str):
    handle, err = _handle(session_id)
    if err:
        return err
    parsed, err = _parse(models.LabelsRequest)
    if err:
        return err
    with handle.lock:
        unknown = [pid for pid in parsed.labels if pid not in handle.pending]
        if unknown:
            return jsonify({"error": "unknown_patch", "ids": unknown}), 404
        # A label applies to every pending entry sharing the id.
        labeled = []
        for pid, label in parsed.labels.items():
            for patch in handle.pending[pid]:
                patch.label = label
                labeled.append(patch)
        handle.session.submit_labels(labeled)
        for pid in parsed.labels:
            del handle.pending[pid]
        return jsonify(_summary(session_id, handle))


@sessions_bp.route("/api/sessions/<session_id>/classify", methods=["POST"])
def classify(session_id: str):
    handle, err = _handle(session_id)
    if err:
        return err
    parsed, err = _parse(models.ClassifyRequest)
    if err:
        return err
    patches = [Patch(id=p.id, features=p.features) for p in parsed.patches]
    with handle.lock:
        handle.session.classify_batch(patches)
    if parsed.sort:
        patches = sort_by_distance(patches)
    return jsonify({
        "patches": [{"id": p.id, "label": p.label, "distance": p.distance} for p in patches],
        "count": len(patches),
    })
