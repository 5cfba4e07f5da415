"""Test configuration and shared fixtures for the view designer core.

Every test runs with an isolated user configuration directory and a fresh
``ConfigManager`` so that overrides on the developer machine never leak in.
"""

import logging
import os
import sys
from typing import Any, Dict

import pytest

# Ensure project root is importable when running pytest from repository root
_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

from view_designer.config import ConfigManager
from view_designer.core.models import ViewDocument
from view_designer.ui.controllers import DocumentController

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def make_view_content() -> Dict[str, Any]:
    """A coordinate container holding two labels and an empty flex panel."""
    return {
        "root": {
            "type": "ia.container.coord",
            "meta": {"name": "root"},
            "layout": {"x": 0, "y": 0, "width": 800, "height": 600},
            "children": [
                {
                    "type": "ia.display.label",
                    "meta": {"name": "Label1"},
                    "props": {"text": "Hello"},
                    "layout": {"x": 10, "y": 20, "width": 100, "height": 30},
                },
                {
                    "type": "ia.display.label",
                    "meta": {"name": "Label2"},
                    "props": {"text": "World"},
                    "layout": {"x": 50, "y": 60, "width": 80, "height": 30},
                },
                {
                    "type": "ia.container.flex",
                    "meta": {"name": "Panel"},
                    "layout": {"x": 0, "y": 100, "width": 200, "height": 200},
                    "children": [],
                },
            ],
        },
        "params": {"machineId": 3},
    }


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point user overrides at an empty temp directory and reset the singleton."""
    monkeypatch.setenv("VIEW_DESIGNER_CONFIG_DIR", str(tmp_path / "user_config"))
    ConfigManager.reset()
    yield
    ConfigManager.reset()


@pytest.fixture
def view_content():
    return make_view_content()


@pytest.fixture
def document(view_content):
    return ViewDocument.from_dict(view_content)


@pytest.fixture
def alignment_document():
    """Root with A{x:10,w:50} and B{x:100,w:30}."""
    return ViewDocument.from_dict({
        "root": {
            "type": "ia.container.coord",
            "children": [
                {"type": "ia.display.label", "meta": {"name": "A"},
                 "layout": {"x": 10, "y": 0, "width": 50, "height": 20}},
                {"type": "ia.display.label", "meta": {"name": "B"},
                 "layout": {"x": 100, "y": 0, "width": 30, "height": 20}},
            ],
        }
    })


@pytest.fixture
def controller(document):
    ctrl = DocumentController()
    ctrl.load_document(document)
    return ctrl
