"""
EVOLVING STRING API ROUTES - FLASK BLUEPRINT

JSON endpoints over evolvingstring.evolving_core. The server keeps no state:
clients send either the serialized state returned by /init, or the raw
seed/secret/interval triple.

EXAMPLES:
curl -X POST http://localhost:5000/init -H "Content-Type: application/json" \
     -d '{"seed": "test_string", "secret": "secret", "interval": 60}'
curl -X POST http://localhost:5000/current -H "Content-Type: application/json" \
     -d '{"state": "<state from /init>"}'
"""

import base64
import io
import logging

import qrcode
from flask import Blueprint, jsonify, request

from evolvingstring import evolving_core
from evolvingstring.errors import ClockSkew, EvolvingStringError, InvalidOffset

logger = logging.getLogger(__name__)

evolving_bp = Blueprint('evolving', __name__)


class InvalidRequestBody(EvolvingStringError, ValueError):
    """Request body is missing or malformed."""


@evolving_bp.errorhandler(EvolvingStringError)
def handle_core_error(e):
    status = 409 if isinstance(e, ClockSkew) else 400
    logger.info("%s: %s", type(e).__name__, e)
    return jsonify({"error": str(e), "kind": type(e).__name__}), status


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidRequestBody("JSON object body is required")
    return data


def _create_from(data: dict) -> evolving_core.TokenGenerator:
    missing = [k for k in ("seed", "secret", "interval") if k not in data]
    if missing:
        raise InvalidRequestBody(f"missing fields: {', '.join(missing)}")
    if not isinstance(data["seed"], str) or not isinstance(data["secret"], str):
        raise InvalidRequestBody("seed and secret must be strings")
    return evolving_core.create(data["seed"], data["secret"], data["interval"])


def _generator_from(data: dict) -> evolving_core.TokenGenerator:
    """Restore from {"state": ...} or create fresh from {"seed", "secret", "interval"}."""
    if "state" in data:
        return evolving_core.deserialize(data["state"])
    return _create_from(data)


@evolving_bp.route('/health', methods=['GET'])
def health():
    return jsonify({"status": "ok"})


@evolving_bp.route('/init', methods=['POST'])
def init_generator():
    """
    CREATE A GENERATOR

    Input:  {"seed": "...", "secret": "...", "interval": 60}
    Output: {"state": "<base64>", "epoch": "2026-10-18T21:00:00+00:00"}
    """
    generator = _create_from(_json_body())
    state = generator.serialize()
    logger.info("Created generator seed=%s... interval=%ds", generator.seed[:8], generator.interval)
    return jsonify({"state": state, "epoch": generator.epoch.isoformat()}), 201


@evolving_bp.route('/current', methods=['POST'])
def current():
    """
    CURRENT TOKEN

    Input:  {"state": "..."}  or  {"seed": "...", "secret": "...", "interval": 60}
    Output: {"token": "<64 hex>", "interval_index": 3, "remaining": 17}
    """
    generator = _generator_from(_json_body())
    now = evolving_core.utcnow()
    return jsonify({
        "token": generator.current_token(now),
        "interval_index": generator.interval_index(now),
        "remaining": generator.seconds_remaining(now),
    })


@evolving_bp.route('/predict', methods=['POST'])
def predict():
    """
    PREDICTED TOKEN

    Input (one of):
      {"state": "...", "at": "2030-01-01T00:00:00+0000"}
      {"state": "...", "offset": 3600}      # seconds from the generator epoch
    Output: {"token": "<64 hex>"}
    """
    data = _json_body()
    generator = _generator_from(data)
    if "at" in data:
        target = evolving_core.parse_timestamp(data["at"])
        token = generator.token_at(target)
    elif "offset" in data:
        token = generator.predict_token(data["offset"])
    else:
        raise InvalidOffset("either at or offset is required")
    return jsonify({"token": token})


@evolving_bp.route('/state/decode', methods=['POST'])
def decode_state():
    """
    INSPECT A SERIALIZED STATE (the secret is not echoed back)

    Input:  {"state": "..."}
    Output: {"seed": "...", "interval": 60, "epoch": "..."}
    """
    data = _json_body()
    if "state" not in data:
        raise InvalidRequestBody("state is required")
    generator = evolving_core.deserialize(data["state"])
    return jsonify({
        "seed": generator.seed,
        "interval": generator.interval,
        "epoch": generator.epoch.isoformat(),
    })


@evolving_bp.route('/state/qr', methods=['POST'])
def state_qr():
    """
    QR CODE OF A SERIALIZED STATE, so the other party can scan it

    Input:  {"state": "..."}
    Output: {"qr_code": "data:image/png;base64,..."}
    """
    data = _json_body()
    if "state" not in data:
        raise InvalidRequestBody("state is required")
    # refuse to render anything that is not a valid state
    state = evolving_core.deserialize(data["state"]).serialize()

    qr = qrcode.QRCode(version=None, box_size=10, border=5)
    qr.add_data(state)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    img_str = base64.b64encode(buffer.getvalue()).decode()
    return jsonify({"qr_code": f"data:image/png;base64,{img_str}"})
