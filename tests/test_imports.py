"""Test module imports and package functionality."""

from __future__ import annotations

import subprocess
import sys
from types import ModuleType

import pytest


class TestCoreImports:
    """Test that core modules can be imported successfully."""

    def test_import_main_package(self) -> None:
        """Test that main package can be imported."""
        import learnquest_client

        assert isinstance(learnquest_client, ModuleType)
        assert learnquest_client.ApiClient is not None
        assert callable(learnquest_client.main)

    def test_import_api_modules(self) -> None:
        import learnquest_client.api
        import learnquest_client.api.client
        import learnquest_client.api.endpoints
        import learnquest_client.api.envelope
        import learnquest_client.api.executor
        import learnquest_client.api.multipart
        import learnquest_client.api.session

        assert learnquest_client.api.ApiClient is learnquest_client.api.client.ApiClient

    def test_import_facade_modules(self) -> None:
        import learnquest_client.facades

        assert learnquest_client.facades.NotificationFacade is not None
        assert learnquest_client.facades.AuthFacade is not None

    def test_import_realtime_modules(self) -> None:
        import learnquest_client.realtime

        assert learnquest_client.realtime.NotificationSynchronizer is not None
        assert learnquest_client.realtime.PushStream is not None

    def test_import_support_modules(self) -> None:
        import learnquest_client.core
        import learnquest_client.models
        import learnquest_client.types
        import learnquest_client.utils

        assert learnquest_client.core is not None
        assert learnquest_client.models is not None
        assert learnquest_client.types is not None
        assert learnquest_client.utils is not None


class TestFreshInterpreterImports:
    """Test that each entry point imports first in a clean interpreter.

    Modules already cached by the test session would hide import cycles, so
    every case runs in its own process.
    """

    @pytest.mark.parametrize(
        "module",
        [
            "learnquest_client",
            "learnquest_client.__main__",
            "learnquest_client.facades",
            "learnquest_client.facades.notifications",
            "learnquest_client.realtime",
            "learnquest_client.realtime.synchronizer",
            "learnquest_client.realtime.stream",
        ],
    )
    def test_module_imports_first(self, module: str) -> None:
        result = subprocess.run(
            [sys.executable, "-c", f"import {module}"],
            capture_output=True,
            text=True,
            timeout=60,
            check=False,
        )

        assert result.returncode == 0, result.stderr
