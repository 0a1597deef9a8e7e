import random

import pytest

from models import CarRecord
from store import CarStore

SAMPLE_DOCS = [
    {
        "listingId": "a1",
        "title": "Toyota Camry",
        "year": 2019,
        "price": 1000000,
        "description": ["One owner"],
        "image": {"src": "main.jpg"},
        "images": [{"src": "1.jpg"}, {"src": "2.jpg"}, {"src": "3.jpg"}],
    },
    {
        "listingId": "a2",
        "title": "Subaru Impreza",
        "year": 2012,
        "initialPriceRub": 800000,
        "description": ["AWD"],
        "image": {"src": "impreza.jpg"},
    },
    {
        "listingId": "a3",
        "title": "Lada Granta (2190)",
        "year": 2021,
        "price": 720000,
        "images": [{"src": "granta.jpg"}],
    },
    {
        "listingId": "a4",
        "title": "Toyota Camry",
        "year": 2015,
        "price": 1300000,
    },
]

@pytest.fixture()
def sample_docs():
    return [dict(d) for d in SAMPLE_DOCS]

@pytest.fixture()
def sample_cars(sample_docs):
    return [CarRecord.from_document(d) for d in sample_docs]

@pytest.fixture()
def store(sample_docs):
    return CarStore.from_records(sample_docs, rng=random.Random(7))
