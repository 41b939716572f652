"""
tests/conftest.py — pytest fixtures for the issue reporter
"""
import pytest
from fastapi.testclient import TestClient

from issue_reporter.database import MemStorage
from issue_reporter.wizard import DraftStore, StepController, SubmissionAssembler
from main import create_app


@pytest.fixture(autouse=True)
def no_slack(monkeypatch):
    monkeypatch.delenv("SLACK_WEBHOOK_URL", raising=False)


@pytest.fixture()
def store():
    return MemStorage()


@pytest.fixture()
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return str(path)


@pytest.fixture()
def app(store, upload_dir):
    return create_app(store=store, upload_dir=upload_dir)


@pytest.fixture()
def client(app):
    """Test client for API integration tests."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def drafts(tmp_path):
    return DraftStore(str(tmp_path / "draft.json"))


@pytest.fixture()
def controller(client, drafts):
    """A wizard wired to the test application."""
    return StepController(assembler=SubmissionAssembler(client), drafts=drafts)


# ── Issue data ────────────────────────────────────────────────────────────────

@pytest.fixture()
def issue_values():
    """A complete draft, keyed by field name."""
    return {
        "title": "Map screen flickers",
        "description": "The map view flickers after resuming from standby.",
        "platform": "Field tablet",
        "product_category": "pegasus",
        "severity": "major",
        "frequency": "often",
        "reproducible": "yes",
        "reproduction_steps": "1. Open the map\n2. Put the device on standby\n3. Resume",
        "expected_behavior": "The map renders normally",
        "actual_behavior": "The map flickers for several seconds",
        "software_version": "2.4.1",
        "os_version": "10.15.7",
        "reported_by": "Field Tester",
    }


@pytest.fixture()
def issue_payload():
    """The same report as it travels in ``issueData``."""
    return {
        "title": "Map screen flickers",
        "description": "The map view flickers after resuming from standby.",
        "platform": "Field tablet",
        "productCategory": "pegasus",
        "severity": "major",
        "frequency": "often",
        "customFrequencyDescription": "",
        "reproducible": "yes",
        "reproductionSteps": "1. Open the map\n2. Put the device on standby\n3. Resume",
        "expectedBehavior": "The map renders normally",
        "actualBehavior": "The map flickers for several seconds",
        "softwareVersion": "2.4.1",
        "osVersion": "10.15.7",
        "additionalEnvironment": "",
        "reportedBy": "Field Tester",
        "acceptTerms": True,
    }
