from unittest.mock import MagicMock

import pytest
import requests

from car_client import CarGameClient, CarServiceError
from models import CarRecord

def _resp(status=200, payload=None, text=""):
    r = MagicMock()
    r.status_code = status
    r.text = text
    if isinstance(payload, Exception):
        r.json.side_effect = payload
    else:
        r.json.return_value = payload
    return r

def _client(*responses, retries=3):
    session = MagicMock()
    session.request.side_effect = list(responses)
    sleeps = []
    client = CarGameClient(
        base_url="http://game.test/", timeout=1, retries=retries, backoff=0.5,
        session=session, sleep=sleeps.append,
    )
    return client, session, sleeps

def test_random_car_parses_payload():
    client, session, _ = _client(_resp(payload={"listing_id": "x", "title": "BMW X5", "price": 10}))
    car = client.random_car()
    assert car == CarRecord(listing_id="x", title="BMW X5", price=10)
    session.request.assert_called_once_with("GET", "http://game.test/api/random-car", timeout=1)

def test_score_guess_sends_truth():
    client, session, _ = _client(_resp(payload={"total_score": 4000}))
    car = CarRecord(title="BMW X5", price=10)
    assert client.score_guess(10, "bmw", car) == {"total_score": 4000}
    _, kwargs = session.request.call_args
    assert kwargs["json"]["correct"]["title"] == "BMW X5"
    assert kwargs["json"]["guess_price"] == 10

def test_search_titles_filters_junk():
    client, session, _ = _client(_resp(payload=["BMW X5", 3, None]))
    assert client.search_titles("bm") == ["BMW X5"]
    _, kwargs = session.request.call_args
    assert kwargs["params"] == {"q": "bm"}

def test_retries_with_exponential_backoff():
    client, session, sleeps = _client(
        requests.ConnectionError("down"),
        _resp(status=503),
        requests.Timeout("slow"),
        _resp(payload={"title": "Kia Rio"}),
    )
    assert client.random_car().title == "Kia Rio"
    assert sleeps == [0.5, 1.0, 2.0]
    assert session.request.call_count == 4

def test_gives_up_after_retries():
    client, session, sleeps = _client(*[requests.ConnectionError("down")] * 3, retries=2)
    with pytest.raises(CarServiceError):
        client.random_car()
    assert session.request.call_count == 3
    assert sleeps == [0.5, 1.0]

def test_client_errors_are_not_retried():
    client, session, sleeps = _client(_resp(status=404, text="nope"))
    with pytest.raises(CarServiceError):
        client.random_car()
    assert session.request.call_count == 1
    assert sleeps == []

def test_invalid_json_fails_immediately():
    client, _, _ = _client(_resp(payload=ValueError("bad json")))
    with pytest.raises(CarServiceError):
        client.health()

def test_non_object_car_is_an_error():
    client, _, _ = _client(_resp(payload=["not", "a", "car"]))
    with pytest.raises(CarServiceError):
        client.random_car()

@pytest.mark.parametrize("exc", [
    requests.exceptions.ChunkedEncodingError("truncated"),
    requests.exceptions.TooManyRedirects("loop"),
    requests.exceptions.InvalidURL("bad url"),
])
def test_other_request_errors_become_service_errors(exc):
    client, session, sleeps = _client(exc)
    with pytest.raises(CarServiceError):
        client.random_car()
    assert session.request.call_count == 1
    assert sleeps == []
