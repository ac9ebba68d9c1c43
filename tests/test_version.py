"""Tests de l'extraction de la ressource de version."""

from __future__ import annotations

import logging

import pytest

from unisbom.core.errors import (
    CollectionError,
    VersionBlockQueryFailed,
    VersionInfoLoadFailed,
    VersionInfoSizeUnavailable,
    VersionResourceError,
)
from unisbom.win32.version import format_version, get_file_version

DRIVER = "C:\\Windows\\system32\\drivers\\acpi.sys"


class TestFormatVersion:
    """Découpage des deux mots de 32 bits."""

    def test_quad(self) -> None:
        assert format_version(0x00010002, 0x00030004) == "1.2.3.4"

    def test_windows_build(self) -> None:
        assert format_version(0x000A0000, 0x4A610001) == "10.0.19041.1"

    def test_zero(self) -> None:
        assert format_version(0, 0) == "0.0.0.0"

    def test_max_components(self) -> None:
        assert format_version(0xFFFFFFFF, 0xFFFFFFFF) == "65535.65535.65535.65535"


class TestGetFileVersion:
    """Séquence taille, chargement, bloc fixe."""

    def test_success(self, version_api_factory) -> None:
        api = version_api_factory({DRIVER: (0x00010002, 0x00030004)})
        assert get_file_version(DRIVER, api=api) == "1.2.3.4"
        assert [step for step, _ in api.calls] == ["size", "load", "query"]

    def test_fixed_block_is_logged_at_debug(self, version_api_factory, caplog) -> None:
        caplog.set_level(logging.DEBUG, logger="unisbom")
        api = version_api_factory({DRIVER: (0x00010002, 0x00030004)})
        get_file_version(DRIVER, api=api)
        assert "dwProductVersionMS" in caplog.text

    def test_size_unavailable(self, version_api_factory) -> None:
        api = version_api_factory(failures={DRIVER: ("size", 2)})
        with pytest.raises(VersionInfoSizeUnavailable) as excinfo:
            get_file_version(DRIVER, api=api)

        error = excinfo.value
        assert error.native_error_code == 2
        assert error.path == DRIVER
        assert "GetFileVersionInfoSizeW" in str(error)
        assert "introuvable" in str(error)
        assert [step for step, _ in api.calls] == ["size"]

    def test_load_failed(self, version_api_factory) -> None:
        api = version_api_factory(failures={DRIVER: ("load", 1812)})
        with pytest.raises(VersionInfoLoadFailed) as excinfo:
            get_file_version(DRIVER, api=api)
        assert excinfo.value.native_error_code == 1812
        assert "GetFileVersionInfoW" in str(excinfo.value)
        assert [step for step, _ in api.calls] == ["size", "load"]

    def test_block_query_failed(self, version_api_factory) -> None:
        api = version_api_factory(failures={DRIVER: ("query", 1813)})
        with pytest.raises(VersionBlockQueryFailed) as excinfo:
            get_file_version(DRIVER, api=api)
        assert excinfo.value.native_error_code == 1813
        assert "VerQueryValueW" in str(excinfo.value)

    def test_failures_are_not_collection_errors(self, version_api_factory) -> None:
        api = version_api_factory(failures={DRIVER: ("size", 2)})
        with pytest.raises(VersionResourceError) as excinfo:
            get_file_version(DRIVER, api=api)
        assert not isinstance(excinfo.value, CollectionError)
