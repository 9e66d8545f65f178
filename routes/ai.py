"""
routes/ai.py — AI-assisted analysis routes.

Provides:
- POST /ai/livestock-health — Health analysis of a livestock camera snapshot
- POST /ai/diagnose-plant — Plant disease diagnosis from a photo
- POST /ai/suggest-crops — Crop suggestions from a soil photo
- POST /ai/spending-forecast — Spending forecast against a budget
- POST /ai/analyze-invoice — Invoice reading
- POST /ai/resource-usage-insights — Fertilizer and water usage insights for a date range

The work is done by the external inference service. When it fails, the
route still answers 200 with the flow's neutral fallback result.
"""

from flask import Blueprint, request, jsonify

from errors import NotFoundError, ValidationError
from extensions import get_inference_client
from utils.inference import FLOW_ROUTES, LIVESTOCK_TYPES, missing_inputs, run_with_fallback

ai_bp = Blueprint('ai', __name__, url_prefix='/ai')


@ai_bp.route('/<flow_slug>', methods=['POST'])
def run_flow(flow_slug):
    """Run an inference flow (JSON API)."""
    flow = FLOW_ROUTES.get(flow_slug)
    if flow is None:
        raise NotFoundError(f"Unknown analysis: {flow_slug}")

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object.')

    missing = missing_inputs(flow, payload)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    if flow == 'analyzeLivestockHealth' and payload['animalType'] not in LIVESTOCK_TYPES:
        raise ValidationError(f"animalType must be one of: {', '.join(LIVESTOCK_TYPES)}")

    return jsonify(run_with_fallback(get_inference_client(), flow, payload))
