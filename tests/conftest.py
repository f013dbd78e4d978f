# -*- coding: utf-8 -*-
"""
Shared fixtures for the wizard flow tests.
"""
import os
import sys
import tempfile
from pathlib import Path

# Must be set before app.config is imported anywhere
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("WIZARD_LOGS_DIR", tempfile.mkdtemp(prefix="wizard_flow_logs_"))

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from PyQt5.QtWidgets import QApplication

from services.wizard import ControlModelBuilder, NavigationEngine, WizardDataModel


@pytest.fixture(scope="session")
def qapp():
    """Create QApplication for tests."""
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv)
    yield app


def page(page_id, *content, **extra):
    """Authored page mapping."""
    data = {"id": page_id, "content": list(content)}
    data.update(extra)
    return data


def text_field(field, **validators):
    return {"type": "formField", "field": field, "formFieldType": "text",
            "validators": validators}


@pytest.fixture
def two_section_definition():
    """The two-section example flow: S1 (r1 → r2) then S2 (r3, wizardComplete)."""
    return [
        {
            "id": "S1",
            "title": "Section one",
            "routeStart": "r1",
            "routes": [
                {"id": "r1", "pageId": "p1", "routeNext": "r2"},
                {"id": "r2", "pageId": "p2", "sectionComplete": True},
            ],
            "pages": [page("p1"), page("p2")],
        },
        {
            "id": "S2",
            "title": "Section two",
            "wizardComplete": True,
            "routeStart": "r3",
            "routes": [{"id": "r3", "pageId": "p3", "sectionComplete": True}],
            "pages": [page("p3")],
        },
    ]


@pytest.fixture
def loan_definition():
    """
    A three-section application flow.

    - applicant: name page (required field), then a branch on maritalStatus
    - household: repeats once per item of ``persons``
    - review: previousRequired, wizardComplete
    """
    return {
        "sections": [
            {
                "id": "applicant",
                "title": "Applicant",
                "routeStart": "a-name",
                "routes": [
                    {"id": "a-name", "pageId": "name", "routeNext": "a-status"},
                    {
                        "id": "a-status",
                        "pageId": "status",
                        "routeNext": [
                            {
                                "routeNext": "a-spouse",
                                "condition": "and",
                                "rules": [
                                    {"field": "maritalStatus", "operator": "=", "value": "married"},
                                ],
                            },
                            {"routeNext": "a-done", "default": True},
                        ],
                    },
                    {"id": "a-spouse", "pageId": "spouse", "routeNext": "a-done"},
                    {"id": "a-done", "pageId": "summary", "sectionComplete": True},
                ],
                "pages": [
                    page(
                        "name",
                        {"type": "html", "html": "<h2>Who are you?</h2>"},
                        {
                            "type": "row",
                            "columns": [
                                {"columnSize": 6, "content": [text_field("firstName", required=True)]},
                                {"columnSize": 6, "content": [text_field("lastName", required=True)]},
                            ],
                        },
                        text_field("email", email=True),
                    ),
                    page("status", text_field("maritalStatus", required=True)),
                    page("spouse", text_field("spouseName", required=True)),
                    page("summary", {"type": "feature", "featureId": "applicant-summary"}),
                ],
            },
            {
                "id": "household",
                "title": "Household members",
                "routeStart": "h-person",
                "settings": {"arrayField": "persons"},
                "routes": [
                    {"id": "h-person", "pageId": "person", "routeNext": "h-income"},
                    {"id": "h-income", "pageId": "income", "sectionComplete": True},
                ],
                "pages": [
                    page("person", text_field("persons[].name", required=True)),
                    page("income", text_field("persons[].income")),
                ],
            },
            {
                "id": "review",
                "title": "Review",
                "routeStart": "rv-check",
                "wizardComplete": True,
                "settings": {"previousRequired": True},
                "routes": [{"id": "rv-check", "pageId": "check", "sectionComplete": True}],
                "pages": [page("check", settings={"backButtonVisible": True, "canSave": True})],
            },
        ]
    }


@pytest.fixture
def builder():
    return ControlModelBuilder()


@pytest.fixture
def two_section_model(builder, two_section_definition):
    return builder.build(two_section_definition)


@pytest.fixture
def loan_model(builder, loan_definition):
    return builder.build(loan_definition)


@pytest.fixture
def loan_data():
    return WizardDataModel({
        "firstName": "Ada",
        "lastName": "Lovelace",
        "maritalStatus": "single",
        "persons": [{"name": "Ada"}, {"name": "Charles"}],
    })


@pytest.fixture
def engine(two_section_model):
    engine = NavigationEngine(two_section_model)
    engine.start()
    yield engine
    engine.close()


@pytest.fixture
def loan_engine(loan_model, loan_data):
    engine = NavigationEngine(loan_model, data_model=loan_data)
    engine.start()
    yield engine
    engine.close()
