"""Tests for the tool schema registry and its lockstep with the dispatcher."""

from __future__ import annotations

import pytest

from careeros.core.continuation import AutoContinuationPolicy
from careeros.core.conversation import ConversationStore
from careeros.core.dispatcher import ToolDispatcher, ToolRegistryMismatch
from careeros.core.state import AppView, ApplicationState
from careeros.providers.types import ToolSchema
from careeros.tools.registry import APP_VIEWS, DEFAULT_TOOLS, ToolRegistry


def _dispatcher(registry: ToolRegistry) -> ToolDispatcher:
    return ToolDispatcher(ApplicationState(), ConversationStore(), AutoContinuationPolicy(), registry=registry)


def test_default_registry_declares_all_tools():
    registry = ToolRegistry()
    assert registry.names() == {
        "navigateApp",
        "analyzeJob",
        "generateResume",
        "generateRoadmap",
        "checkATS",
        "prepareInterview",
        "generateProjectsPPT",
        "syncProfileData",
    }
    assert [s.name for s in registry.schemas()] == [s.name for s in DEFAULT_TOOLS]


def test_registry_rejects_duplicate_names():
    schema = ToolSchema(name="navigateApp", description="x", parameters={"type": "object", "properties": {}})
    with pytest.raises(ValueError):
        ToolRegistry([schema, schema])


def test_navigate_enum_matches_app_views():
    schema = ToolRegistry().get("navigateApp")
    assert schema.parameters["properties"]["targetView"]["enum"] == APP_VIEWS
    assert APP_VIEWS == [view.value for view in AppView]


def test_dispatcher_accepts_matching_registry():
    dispatcher = _dispatcher(ToolRegistry())
    assert dispatcher.tool_names == ToolRegistry().names()


def test_dispatcher_rejects_schema_without_handler():
    extra = ToolSchema(name="sendEmail", description="x", parameters={"type": "object", "properties": {}})
    with pytest.raises(ToolRegistryMismatch, match="sendEmail"):
        _dispatcher(ToolRegistry(list(DEFAULT_TOOLS) + [extra]))


def test_dispatcher_rejects_handler_without_schema():
    schemas = [s for s in DEFAULT_TOOLS if s.name != "checkATS"]
    with pytest.raises(ToolRegistryMismatch, match="checkATS"):
        _dispatcher(ToolRegistry(schemas))
