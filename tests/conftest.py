"""Pytest configuration and fixtures."""

import json
import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Optional

import pytest

from awhere_api.auth.credentials import Credentials
from awhere_api.config import DEFAULT_BASE_URL, DEFAULT_TOKEN_URL
from awhere_api.session import AWhereSession

TODAY = date(2024, 6, 15)

EXPIRED_BODY = json.dumps(
    {
        "statusCode": 401,
        "statusName": "Unauthorized",
        "detailedMessage": "API Access Expired",
        "errorId": "a1b2c3",
    }
)

_FIELD_LOOKUP = re.compile(r"/fields/([^/?]+)$")


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self):
        return json.loads(self.text)


@dataclass
class Call:
    method: str
    url: str
    kwargs: dict

    @property
    def headers(self) -> dict:
        return self.kwargs.get("headers") or {}


@dataclass
class FakeHttp:
    """Gateway double.

    Token requests are answered with fresh tokens; ``GET /fields/{id}``
    answers 200 for ids in ``fields`` and 404 otherwise. Everything else pops
    the next queued response (or raises it, if it is an exception).
    """

    fields: Optional[set] = None
    responses: list = field(default_factory=list)
    token_responses: list = field(default_factory=list)
    calls: list = field(default_factory=list)
    tokens_issued: int = 0

    def queue(self, *responses) -> "FakeHttp":
        self.responses.extend(responses)
        return self

    def request(self, method, url, **kwargs):
        self.calls.append(Call(method, url, kwargs))

        if url == DEFAULT_TOKEN_URL:
            if self.token_responses:
                response = self.token_responses.pop(0)
                if isinstance(response, Exception):
                    raise response
                return response
            self.tokens_issued += 1
            return FakeResponse(
                200,
                {
                    "access_token": f"token-{self.tokens_issued}",
                    "expires_in": 3600,
                    "token_type": "Bearer",
                },
            )

        lookup = _FIELD_LOOKUP.search(url)
        if self.fields is not None and method == "GET" and lookup:
            field_id = lookup.group(1)
            if field_id in self.fields:
                return FakeResponse(200, field_document(field_id))
            return FakeResponse(
                404,
                {"statusCode": 404, "statusName": "Not Found", "detailedMessage": "No field"},
            )

        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def api_calls(self) -> list:
        """Calls other than token requests."""
        return [call for call in self.calls if call.url != DEFAULT_TOKEN_URL]


# ============================================
# Sample documents
# ============================================

def field_document(field_id: str = "field123") -> dict:
    return {
        "id": field_id,
        "name": "North Field",
        "acres": 100,
        "farmId": "farm1",
        "centerPoint": {"latitude": 39.8282, "longitude": -98.5795},
        "_links": {"self": {"href": f"/v2/fields/{field_id}"}},
    }


def observation_record(day: date) -> dict:
    return {
        "date": day.isoformat(),
        "location": {"latitude": 39.8282, "longitude": -98.5795, "fieldId": "field123"},
        "temperatures": {"max": 31.2, "min": 18.4, "units": "C"},
        "precipitation": {"amount": 0.0, "units": "mm"},
        "solar": {"amount": 7800.0, "units": "Wh/m^2"},
        "relativeHumidity": {"max": 88.0, "min": 35.0},
        "wind": {"morningMax": 4.1, "dayMax": 6.3, "average": 3.2, "units": "m/sec"},
        "_links": {"self": {"href": f"/v2/weather/fields/field123/observations/{day}"}},
    }


def observations_document(start: date, days: int) -> dict:
    return {
        "observations": [observation_record(start + timedelta(days=i)) for i in range(days)],
        "_links": {"self": {"href": "/v2/weather/fields/field123/observations"}},
    }


def forecast_day(day: date) -> dict:
    return {
        "date": day.isoformat(),
        "location": {"latitude": 39.8282, "longitude": -98.5795},
        "forecast": [
            {
                "startTime": f"{day}T00:00:00+00:00",
                "endTime": f"{day}T23:59:59+00:00",
                "conditionsCode": "A11",
                "conditionsText": "Sunny, Light Wind",
                "temperatures": {"max": 31.2, "min": 18.4, "units": "C"},
                "precipitation": {"chance": 10, "amount": 0.0, "units": "mm"},
                "sky": {"cloudCover": 5, "sunshine": 95},
                "solar": {"amount": 7800.0, "units": "Wh/m^2"},
                "relativeHumidity": {"average": 55.0, "max": None, "min": None},
                "wind": {"average": 3.2, "max": None, "min": None, "units": "m/sec"},
                "dewPoint": {"amount": 12.0, "units": "C"},
                "soilTemperatures": [{"depth": "0-0.1 m", "average": 22.1, "units": "C"}],
                "soilMoisture": [{"depth": "0-0.1 m", "average": 0.31}],
            }
        ],
        "_links": {"self": {"href": f"/v2/weather/fields/field123/forecasts/{day}"}},
    }


def forecasts_document(start: date, days: int) -> dict:
    return {"forecasts": [forecast_day(start + timedelta(days=i)) for i in range(days)]}


def soils_day(day: date, depths=("0-0.1 m", "0.1-0.4 m")) -> dict:
    document = forecast_day(day)
    block = document["forecast"][0]
    temperatures = (22.1, 21.1, 19.8)
    moisture = (0.31, 0.33, 0.35)
    block["soilTemperatures"] = [
        {"depth": depth, "average": temperatures[i], "max": None, "min": None, "units": "C"}
        for i, depth in enumerate(depths)
    ]
    block["soilMoisture"] = [
        {"depth": depth, "average": moisture[i], "max": None, "min": None}
        for i, depth in enumerate(depths)
    ]
    return document


def soils_document(start: date, days: int) -> dict:
    return {"forecasts": [soils_day(start + timedelta(days=i)) for i in range(days)]}


def norms_document(month_days: list) -> dict:
    return {
        "norms": [
            {
                "day": month_day,
                "location": {"latitude": 39.8282, "longitude": -98.5795},
                "meanTemp": {"average": 21.3, "stdDev": 1.9, "units": "C"},
                "precipitation": {"average": 2.1, "stdDev": 3.3, "units": "mm"},
                "_links": {"self": {"href": "/v2/weather/fields/field123/norms"}},
            }
            for month_day in month_days
        ]
    }


def agronomic_values_document(start: date, days: int) -> dict:
    return {
        "accumulations": {"gdd": 120.5, "precipitation": {"amount": 30.2, "units": "mm"}},
        "dailyValues": [
            {
                "date": (start + timedelta(days=i)).isoformat(),
                "location": {"latitude": 39.8282, "longitude": -98.5795},
                "gdd": 12.1,
                "pet": {"amount": 5.2, "units": "mm"},
                "ppet": 0.4,
                "accumulatedGdd": 12.1 * (i + 1),
                "_links": {"self": {"href": "/v2/agronomics/fields/field123/agronomicvalues"}},
            }
            for i in range(days)
        ],
    }


def model_results_document() -> dict:
    return {
        "biofixDate": "2024-04-01",
        "plantingDate": "2024-04-01",
        "modelId": "BarleyGenericMSU",
        "location": {"latitude": 39.8282, "longitude": -98.5795, "fieldId": "field123"},
        "gddUnits": "GDD",
        "previousStages": [
            {"date": "2024-05-01", "id": "stage1", "stage": "Emergence", "gddThreshold": 111},
        ],
        "currentStage": {"date": "2024-06-10", "id": "stage2", "stage": "Tillering", "gddThreshold": 300},
        "nextStage": {"id": "stage3", "stage": "Jointing", "gddThreshold": 500, "gddRemaining": 73},
        "_links": {"self": {"href": "/v2/agronomics/fields/field123/models/BarleyGenericMSU/results"}},
    }


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def today():
    """Fixed reference date for date validation."""
    return TODAY


@pytest.fixture
def credentials():
    return Credentials(key="test-key", secret="test-secret")


@pytest.fixture
def fake_http():
    """Gateway that knows about field123."""
    return FakeHttp(fields={"field123"})


@pytest.fixture
def session(credentials, fake_http, today):
    """Session wired to the fake gateway and fixed clock."""
    return AWhereSession(credentials=credentials, http=fake_http, clock=lambda: today)


@pytest.fixture
def base_url():
    return DEFAULT_BASE_URL
