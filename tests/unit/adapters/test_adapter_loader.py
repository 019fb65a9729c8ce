"""Tests for dynamic adapter loading."""

import importlib
import sys
import textwrap
import types
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from modelgate.adapters.loader import (
    AdapterLoadError,
    distribution_name,
    find_constructor,
    install,
    load_constructor,
    parse_module_ref,
)

ADAPTER_SOURCE = textwrap.dedent(
    """
    def helper():
        return None


    def create_acme(**options):
        return {"options": options}


    def build(**options):
        return "built"
    """
)


@pytest.fixture
def adapter_file(tmp_path):
    path = tmp_path / "acme_adapter.py"
    path.write_text(ADAPTER_SOURCE)
    return path


@pytest.mark.parametrize(
    "module_ref, expected",
    [
        pytest.param("acme", ("acme", None, None), id="bare"),
        pytest.param("acme@1.2.0", ("acme", "1.2.0", None), id="pinned"),
        pytest.param("acme.sdk:make", ("acme.sdk", None, "make"), id="attr"),
        pytest.param("acme@2:make", ("acme", "2", "make"), id="pinned-attr"),
    ],
)
def test_parse_module_ref(module_ref, expected):
    assert parse_module_ref(module_ref) == expected


def test_distribution_name():
    assert distribution_name("acme_sdk.adapters") == "acme-sdk"


class TestFileReferences:
    @pytest.mark.asyncio
    async def test_first_create_export_is_used(self, adapter_file):
        constructor = await load_constructor(f"file://{adapter_file}")
        assert constructor(name="x") == {"options": {"name": "x"}}

    @pytest.mark.asyncio
    async def test_explicit_attribute(self, adapter_file):
        constructor = await load_constructor(f"file://{adapter_file}:build")
        assert constructor() == "built"

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(AdapterLoadError):
            await load_constructor(f"file://{tmp_path / 'missing.py'}")


class TestFindConstructor:
    def test_all_order_is_respected(self):
        module = types.ModuleType("acme_all")
        module.create_a = lambda **options: "a"
        module.create_b = lambda **options: "b"
        module.__all__ = ["create_b", "create_a"]
        assert find_constructor(module) is module.create_b

    def test_no_create_export(self):
        module = importlib.import_module("json")
        with pytest.raises(AdapterLoadError):
            find_constructor(module)

    def test_missing_attribute(self):
        with pytest.raises(AdapterLoadError):
            find_constructor(importlib.import_module("json"), "create_nothing")


class TestPackageReferences:
    @pytest.mark.asyncio
    async def test_installed_module_is_imported(self, tmp_path, monkeypatch):
        (tmp_path / "acme_installed.py").write_text(ADAPTER_SOURCE)
        monkeypatch.syspath_prepend(str(tmp_path))

        with patch("modelgate.adapters.loader.install", new=AsyncMock()) as mock_install:
            constructor = await load_constructor("acme_installed")

        mock_install.assert_not_awaited()
        assert constructor.__name__ == "create_acme"
        sys.modules.pop("acme_installed", None)

    @pytest.mark.asyncio
    async def test_missing_module_without_install(self):
        with pytest.raises(AdapterLoadError, match="not installed"):
            await load_constructor("acme_absent_adapter")

    @pytest.mark.asyncio
    async def test_missing_module_is_installed_with_pin(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MODELGATE_DISABLE_ADAPTER_INSTALL", "0")
        monkeypatch.syspath_prepend(str(tmp_path))

        async def fake_install(requirement):
            (tmp_path / "acme_fresh.py").write_text(ADAPTER_SOURCE)
            importlib.invalidate_caches()

        mock_install = AsyncMock(side_effect=fake_install)
        with patch("modelgate.adapters.loader.install", new=mock_install):
            constructor = await load_constructor("acme_fresh@1.4.0")

        mock_install.assert_awaited_once_with("acme-fresh==1.4.0")
        assert constructor.__name__ == "create_acme"
        sys.modules.pop("acme_fresh", None)

    @pytest.mark.asyncio
    async def test_npm_style_reference_is_rejected(self):
        with pytest.raises(AdapterLoadError, match="not an importable module"):
            await load_constructor("@ai-sdk/anthropic")


@pytest.mark.asyncio
async def test_install_failure_raises():
    process = MagicMock()
    process.returncode = 1
    process.communicate = AsyncMock(return_value=(b"", b"No matching distribution"))

    with patch(
        "modelgate.adapters.loader.asyncio.create_subprocess_exec",
        new=AsyncMock(return_value=process),
    ) as mock_exec:
        with pytest.raises(AdapterLoadError, match="No matching distribution"):
            await install("acme-missing")

    args = mock_exec.await_args.args
    assert args[1:4] == ("-m", "pip", "install")
    assert args[-1] == "acme-missing"
