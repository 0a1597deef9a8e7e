import pytest

from config import load_settings
from formatting import format_error, format_price, parse_formatted
from models import CarRecord, GuessInput, resolve_price

def test_from_document_maps_listing_fields(sample_docs):
    car = CarRecord.from_document(sample_docs[0])
    assert car.listing_id == "a1"
    assert car.year == 2019
    assert car.target_price == 1000000
    assert [i.src for i in car.gallery] == ["1.jpg", "2.jpg", "3.jpg"]

def test_from_document_tolerates_bad_types():
    car = CarRecord.from_document({
        "title": 5, "year": "2010", "price": "cheap", "initialPriceRub": 500,
        "description": "single line", "images": [{"alt": "no src"}, "junk"],
        "image": {"src": "main.jpg", "srcset2x": "main2.jpg"},
    })
    assert car.title is None
    assert car.year is None
    assert car.target_price == 500
    assert car.description == ["single line"]
    assert car.images == []
    assert car.gallery[0].src2x == "main2.jpg"

def test_payload_roundtrip_preserves_record(sample_cars):
    for car in sample_cars:
        assert CarRecord.from_payload(car.to_payload()) == car

@pytest.mark.parametrize("price,legacy,expected", [
    (100, 200, 100),
    (None, 200, 200),
    (float("nan"), 200, 200),
    (True, 200, 200),
    (0, 200, 0),
    (None, None, None),
])
def test_resolve_price(price, legacy, expected):
    assert resolve_price(price, legacy) == expected

def test_guess_input_validity():
    assert GuessInput(price=0, model="x").is_valid
    assert not GuessInput(price=-1, model="x").is_valid
    assert not GuessInput(price=10, model="  ").is_valid
    assert not GuessInput(price=None, model="x").is_valid

@pytest.mark.parametrize("text,expected", [
    ("1 500 000", 1500000),
    ("1,500,000 ₽", 1500000),
    ("", None),
    ("abc", None),
])
def test_parse_formatted(text, expected):
    assert parse_formatted(text) == expected

def test_format_helpers():
    assert format_price(2450000) == "2 450 000"
    assert format_price(None) == "-"
    assert format_error(0.1234) == "12.3%"
    assert format_error(None) == "-"

def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("CAR_GUESS_DATA", "/tmp/cars.json")
    monkeypatch.setenv("CAR_GUESS_RETRIES", "not-a-number")
    monkeypatch.setenv("CAR_GUESS_BACKOFF", "1.5")
    monkeypatch.setenv("CAR_GUESS_CORS_ORIGINS", "http://a.test, http://b.test")
    settings = load_settings()
    assert settings.data_path == "/tmp/cars.json"
    assert settings.retries == 3
    assert settings.backoff == 1.5
    assert settings.cors_origins == ("http://a.test", "http://b.test")
