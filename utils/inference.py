"""
utils/inference.py — Client for the remote inference service.

The AI features (livestock health, plant diagnosis, crop suggestion,
spending forecast, invoice reading, resource usage insights) run as named
flows on an external HTTP service:

    POST <INFERENCE_URL>/flows/<flow_name>   JSON in, JSON object out

run_with_fallback() never raises: a failed call is logged and replaced by
the flow's neutral fallback result, so the dashboard can always render
something.
"""

import copy
import logging
from datetime import date
from typing import Any, Dict, Optional

import requests

from errors import InferenceError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class InferenceClient:
    """Thin requests wrapper around the inference service."""

    def __init__(self, base_url: Optional[str], timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or '').rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def run_flow(self, name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Invoke a flow and return its output object.

        Raises:
            InferenceError: no service configured, transport failure,
                non-2xx status, or a body that is not a JSON object.
        """
        if not self.base_url:
            raise InferenceError('No inference service configured.')

        url = f'{self.base_url}/flows/{name}'
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            output = response.json()
        except requests.exceptions.RequestException as e:
            raise InferenceError(f"Flow '{name}' failed: {e}") from e
        except ValueError as e:
            raise InferenceError(f"Flow '{name}' returned invalid JSON") from e

        if not isinstance(output, dict):
            raise InferenceError(f"Flow '{name}' returned {type(output).__name__}, expected an object")
        return output


# ========================================
# Fallback results
# ========================================

FALLBACKS = {
    'analyzeLivestockHealth': {
        'animalCount': 0,
        'healthAnalysis': [],
        'generalAdvice': 'The AI model could not process the request. Please try again with a clearer image.',
        'visualDescription': '',
        'suggestedId': '',
    },
    'diagnosePlantHealth': {
        'isPlant': False,
        'plantType': 'Unknown',
        'isHealthy': False,
        'diagnosis': 'The AI model could not process the request.',
        'recommendations': 'Please try again with a different image or description. '
                           'If the problem persists, the model may be temporarily unavailable.',
    },
    'suggestCrops': {
        'suggestions': [],
        'soilAnalysis': 'The AI model could not process the request. '
                        'Please try again with a different image or description.',
    },
    'spendingForecast': {
        'forecastedSpending': 0,
        'isWithinBudget': False,
        'recommendations': 'The AI model could not process the request. Please try again later.',
    },
    'analyzeInvoice': {
        'vendor': 'Error',
        'totalAmount': 0,
        'category': 'Other',
        'items': [],
        'summary': 'The AI model could not process the invoice image. Please try again with a clearer picture.',
    },
    'analyzeResourceUsage': {
        'insights': '',
        'overallAssessment': 'The AI model could not analyze resource usage for this period. Please try again later.',
    },
}

# URL slug -> flow name
FLOW_ROUTES = {
    'livestock-health': 'analyzeLivestockHealth',
    'diagnose-plant': 'diagnosePlantHealth',
    'suggest-crops': 'suggestCrops',
    'spending-forecast': 'spendingForecast',
    'analyze-invoice': 'analyzeInvoice',
    'resource-usage-insights': 'analyzeResourceUsage',
}

# Inputs each flow cannot run without
FLOW_INPUTS = {
    'analyzeLivestockHealth': ('imageDataUri', 'animalType'),
    'diagnosePlantHealth': ('photoDataUri',),
    'suggestCrops': ('soilPhotoDataUri',),
    'spendingForecast': ('currentResourceUsage', 'plannedActivities', 'budget'),
    'analyzeInvoice': ('invoiceImageUri',),
    'analyzeResourceUsage': ('farmId', 'startDate', 'endDate'),
}

LIVESTOCK_TYPES = ('Cow', 'Goat', 'Chicken', 'Buffalo', 'Sheep', 'Other')


def missing_inputs(flow: str, payload: Dict[str, Any]):
    """Names of the required inputs absent from payload."""
    return [name for name in FLOW_INPUTS.get(flow, ()) if payload.get(name) in (None, '')]


def fallback_result(flow: str) -> Dict[str, Any]:
    result = copy.deepcopy(FALLBACKS[flow])
    if flow == 'analyzeInvoice':
        result['date'] = date.today().isoformat()
    return result


def run_with_fallback(client: InferenceClient, flow: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Run a flow; on InferenceError log it and return the flow's fallback."""
    try:
        return client.run_flow(flow, payload)
    except InferenceError as e:
        logger.error("%s; returning fallback result", e.message)
        return fallback_result(flow)


