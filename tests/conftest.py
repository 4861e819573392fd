"""Shared fixtures for the formlens test suite."""
import json

import fitz  # PyMuPDF
import pytest

from formlens.models import PageDimensions


def make_pdf(*sizes):
    """Build an in-memory PDF with one blank page per (width, height)."""
    doc = fitz.open()
    for width, height in sizes:
        doc.new_page(width=width, height=height)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def pdf_bytes():
    return make_pdf((200, 100), (300, 400))


@pytest.fixture
def letter_dims():
    """US Letter page rendered at 2x."""
    return PageDimensions(width=612, height=792, renderWidth=1224, renderHeight=1584)


@pytest.fixture
def extraction_payload():
    return {
        "fields": [
            {
                "name": "Full Name",
                "value": "Ada Lovelace",
                "type": "text",
                "pageNumber": 0,
                "coordinates": {"x": 10, "y": 20, "width": 50, "height": 10},
            },
            {
                "name": "Date of Birth",
                "value": "1815-12-10",
                "type": "date",
                "pageNumber": 0,
                "coordinates_norm": {"x": 0.5, "y": 0.5, "width": 0.25, "height": 0.1},
            },
            {
                "name": "Subscribe",
                "value": "checked",
                "type": "checkbox",
                "pageNumber": 1,
                "coordinates": {"x": 100, "y": 100},
            },
        ],
        "formTitle": "Registration",
        "description": "Sign-up form",
    }


@pytest.fixture
def extraction_text(extraction_payload):
    return "```json\n" + json.dumps(extraction_payload) + "\n```"


@pytest.fixture
def pdf_factory():
    return make_pdf
