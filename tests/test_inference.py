"""
tests/test_inference.py — Tests for the inference client and AI routes.

The remote service is replaced by a fake requests session.
"""

import pytest
import requests

from app import create_app
from errors import InferenceError
from utils.inference import InferenceClient, fallback_result, run_with_fallback


class FakeResponse:
    def __init__(self, status_code=200, body=None, invalid_json=False):
        self.status_code = status_code
        self.body = body
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f'{self.status_code} Server Error')

    def json(self):
        if self.invalid_json:
            raise ValueError('Expecting value')
        return self.body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json, timeout))
        if self.error:
            raise self.error
        return self.response


OUTPUT = {
    'animalCount': 3,
    'healthAnalysis': [],
    'generalAdvice': 'Deworm before the wet season.',
}


class TestClient:

    def test_posts_to_flow_url(self):
        session = FakeSession(FakeResponse(body=OUTPUT))
        client = InferenceClient('http://inference.local/', timeout=5, session=session)

        assert client.run_flow('analyzeLivestockHealth', {'animalType': 'Cow'}) == OUTPUT
        assert session.calls == [
            ('http://inference.local/flows/analyzeLivestockHealth', {'animalType': 'Cow'}, 5),
        ]

    def test_unconfigured(self):
        with pytest.raises(InferenceError):
            InferenceClient(None, session=FakeSession()).run_flow('suggestCrops', {})

    @pytest.mark.parametrize('session', [
        FakeSession(error=requests.exceptions.ConnectionError('refused')),
        FakeSession(error=requests.exceptions.Timeout('slow')),
        FakeSession(FakeResponse(status_code=503)),
        FakeSession(FakeResponse(invalid_json=True)),
        FakeSession(FakeResponse(body=['not', 'an', 'object'])),
    ])
    def test_failures_raise_inference_error(self, session):
        client = InferenceClient('http://inference.local', session=session)
        with pytest.raises(InferenceError):
            client.run_flow('suggestCrops', {})

    def test_fallback_on_failure(self):
        client = InferenceClient('http://inference.local',
                                 session=FakeSession(error=requests.exceptions.ConnectionError()))
        result = run_with_fallback(client, 'diagnosePlantHealth', {'photoDataUri': 'data:x'})
        assert result == fallback_result('diagnosePlantHealth')
        assert result['plantType'] == 'Unknown'

    def test_fallbacks_are_copies(self):
        fallback_result('suggestCrops')['suggestions'].append('corn')
        assert fallback_result('suggestCrops')['suggestions'] == []


class TestRoutes:

    @pytest.fixture
    def app(self, tmp_path):
        return create_app({
            'TESTING': True,
            'DATA_DIR': str(tmp_path),
            'WTF_CSRF_ENABLED': False,
            'INFERENCE_URL': 'http://inference.local',
        })

    def test_successful_flow(self, app):
        session = FakeSession(FakeResponse(body=OUTPUT))
        app.extensions['inference_client'].session = session

        with app.test_client() as client:
            rv = client.post('/ai/livestock-health', json={'imageDataUri': 'data:image/png;base64,AAAA',
                                                           'animalType': 'Cow'})
        assert rv.status_code == 200
        assert rv.get_json() == OUTPUT

    def test_service_down_returns_fallback(self, app):
        app.extensions['inference_client'].session = FakeSession(
            error=requests.exceptions.ConnectionError('refused'))

        with app.test_client() as client:
            rv = client.post('/ai/spending-forecast', json={
                'currentResourceUsage': 'Fertilizer 2t', 'plannedActivities': 'Harvest', 'budget': 10000,
            })
        assert rv.status_code == 200
        assert rv.get_json()['forecastedSpending'] == 0
        assert rv.get_json()['isWithinBudget'] is False

    def test_resource_usage_insights(self, app):
        insights = {'insights': 'Split nitrogen applications.', 'overallAssessment': 'Good'}
        session = FakeSession(FakeResponse(body=insights))
        app.extensions['inference_client'].session = session

        with app.test_client() as client:
            rv = client.post('/ai/resource-usage-insights', json={
                'farmId': 'FARM-001', 'startDate': '2024-04-01', 'endDate': '2024-07-01',
            })
        assert rv.status_code == 200
        assert rv.get_json() == insights
        assert session.calls[0][0] == 'http://inference.local/flows/analyzeResourceUsage'

    def test_resource_usage_insights_fallback(self, app):
        app.extensions['inference_client'].session = FakeSession(
            error=requests.exceptions.Timeout('slow'))

        with app.test_client() as client:
            rv = client.post('/ai/resource-usage-insights', json={
                'farmId': 'FARM-001', 'startDate': '2024-04-01', 'endDate': '2024-07-01',
            })
        assert rv.status_code == 200
        assert rv.get_json() == fallback_result('analyzeResourceUsage')
        assert set(rv.get_json()) == {'insights', 'overallAssessment'}

    def test_resource_usage_insights_needs_date_range(self, app):
        with app.test_client() as client:
            rv = client.post('/ai/resource-usage-insights', json={'farmId': 'FARM-001'})
        assert rv.status_code == 400
        assert rv.get_json()['message'] == 'Missing required fields: startDate, endDate'

    def test_missing_inputs(self, app):
        with app.test_client() as client:
            rv = client.post('/ai/livestock-health', json={'animalType': 'Cow'})
        assert rv.status_code == 400
        assert rv.get_json()['message'] == 'Missing required fields: imageDataUri'

    def test_invalid_animal_type(self, app):
        with app.test_client() as client:
            rv = client.post('/ai/livestock-health', json={'imageDataUri': 'data:x', 'animalType': 'Horse'})
        assert rv.status_code == 400

    def test_unknown_flow(self, app):
        with app.test_client() as client:
            rv = client.post('/ai/predict-weather', json={})
        assert rv.status_code == 404
