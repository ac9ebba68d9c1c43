"""Fixtures partagées : faux registre, fausse version.dll et faux lanceur de processus."""

from __future__ import annotations

import json
import logging
import subprocess
from typing import Any

import pytest

from unisbom.core.config import LOG_LEVEL_ENV
from unisbom.core.logger import LOGGER_NAME
from unisbom.win32.registry import REG_SZ, UNINSTALL_ROOTS
from unisbom.win32.version import VS_FIXEDFILEINFO

HKLM = "HKEY_LOCAL_MACHINE"


@pytest.fixture
def isolated_logging(monkeypatch):
    """Chaque test repart d'un logger sans handlers et sans UNISBOM_LOG."""
    monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
    yield
    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


# 2023-01-02T03:04:05Z en FILETIME
SAMPLE_FILETIME = 133171022450000000


def registry_error(message: str, winerror: int = 5) -> OSError:
    error = OSError(winerror, message)
    error.winerror = winerror
    return error


# ---------------------------------------------------------------------------
# Registre
# ---------------------------------------------------------------------------


class FakeHandle:
    def __init__(self, path: str, node: dict, is_root: bool):
        self.path = path
        self.node = node
        self.is_root = is_root


class FakeRegistry:
    """Module compatible winreg rejouant une arborescence en mémoire.

    ``roots`` associe un chemin de racine à ses sous-clés ; chaque sous-clé
    est un dictionnaire ``{"values": [(nom, données, type)], "last_write": int}``.
    """

    HKEY_LOCAL_MACHINE = HKLM

    def __init__(self, roots: dict[str, dict[str, dict[str, Any]]]):
        self.roots = roots
        self.fail_open: set[str] = set()
        self.fail_query: set[str] = set()
        self.fail_enum_keys: set[int] = set()
        self.fail_values: dict[str, set[int]] = {}
        self.opened: list[str] = []
        self.closed: list[str] = []

    def OpenKey(self, key, sub_key):
        if key == HKLM:
            if sub_key not in self.roots or sub_key in self.fail_open:
                raise registry_error(f"Le fichier spécifié est introuvable: {sub_key}", 2)
            handle = FakeHandle(sub_key, self.roots[sub_key], True)
        else:
            if sub_key not in key.node or sub_key in self.fail_open:
                raise registry_error(f"Accès refusé: {sub_key}", 5)
            handle = FakeHandle(f"{key.path}\\{sub_key}", key.node[sub_key], False)
        self.opened.append(handle.path)
        return handle

    def CloseKey(self, key):
        self.closed.append(key.path)

    def QueryInfoKey(self, key):
        name = key.path.rsplit("\\", 1)[-1]
        if name in self.fail_query:
            raise registry_error(f"QueryInfoKey a échoué: {key.path}")
        if key.is_root:
            return len(key.node), 0, 0
        return 0, len(key.node.get("values", [])), key.node.get("last_write", 0)

    def EnumKey(self, key, index):
        names = list(key.node)
        if index in self.fail_enum_keys:
            raise registry_error(f"EnumKey a échoué à l'index {index}")
        if index >= len(names):
            raise registry_error("Il n'y a plus de données disponibles.", 259)
        return names[index]

    def EnumValue(self, key, index):
        name = key.path.rsplit("\\", 1)[-1]
        if index in self.fail_values.get(name, set()):
            raise registry_error(f"EnumValue a échoué à l'index {index}")
        values = key.node.get("values", [])
        if index >= len(values):
            raise registry_error("Il n'y a plus de données disponibles.", 259)
        return values[index]


def sz(name: str, value: str) -> tuple[str, str, int]:
    return name, value, REG_SZ


@pytest.fixture
def sample_registry_tree() -> dict[str, dict[str, dict[str, Any]]]:
    """Deux racines de désinstallation, la seconde vide."""
    return {
        UNINSTALL_ROOTS[0]: {
            "{7-Zip}": {
                "values": [
                    sz("DisplayName", "7-Zip 23.01 (x64)"),
                    sz("DisplayVersion", "23.01"),
                    sz("Publisher", "Igor Pavlov"),
                    sz("InstallLocation", "C:\\Program Files\\7-Zip\\"),
                ],
                "last_write": SAMPLE_FILETIME,
            },
            "KB5034441": {
                "values": [sz("ParentKeyName", "OperatingSystem")],
                "last_write": SAMPLE_FILETIME,
            },
            "Git_is1": {
                "values": [
                    sz("DisplayName", "Git"),
                    sz("Version", "2.43.0"),
                    sz("InstallLocation", ""),
                    sz("InstallSource", "C:\\src"),
                    sz("BundleCachePath", "C:\\cache"),
                ],
                "last_write": SAMPLE_FILETIME,
            },
        },
        UNINSTALL_ROOTS[1]: {},
    }


@pytest.fixture
def fake_registry(sample_registry_tree) -> FakeRegistry:
    return FakeRegistry(sample_registry_tree)


@pytest.fixture
def registry_factory():
    return FakeRegistry


# ---------------------------------------------------------------------------
# version.dll
# ---------------------------------------------------------------------------


class FakeVersionApi:
    """Rejoue la séquence taille / chargement / bloc fixe de version.dll.

    ``failures`` associe un chemin à ``(étape, code)`` avec étape parmi
    ``size``, ``load`` et ``query``.
    """

    def __init__(self, versions: dict[str, tuple[int, int]] | None = None,
                 failures: dict[str, tuple[str, int]] | None = None):
        self.versions = versions or {}
        self.failures = failures or {}
        self.calls: list[tuple[str, str]] = []

    def _failure(self, path: str, step: str):
        failure = self.failures.get(path)
        if failure and failure[0] == step:
            return failure[1]
        return None

    def get_size(self, path):
        self.calls.append(("size", path))
        code = self._failure(path, "size")
        if code is not None:
            return 0, 0, code
        return 1024, 0, 0

    def load(self, path, handle, size):
        self.calls.append(("load", path))
        code = self._failure(path, "load")
        if code is not None:
            return None, code
        return {"path": path, "size": size}, 0

    def query_root(self, buffer):
        path = buffer["path"]
        self.calls.append(("query", path))
        code = self._failure(path, "query")
        if code is not None:
            return None, code
        high, low = self.versions.get(path, (0, 0))
        return VS_FIXEDFILEINFO(dwSignature=0xFEEF04BD, dwProductVersionMS=high, dwProductVersionLS=low), 0

    def describe(self, code):
        return {2: "Le fichier spécifié est introuvable."}.get(code, "")


@pytest.fixture
def version_api_factory():
    return FakeVersionApi


# ---------------------------------------------------------------------------
# Processus
# ---------------------------------------------------------------------------


class FakeRunner:
    """Remplace subprocess.run ; les réponses sont indexées par nom d'outil."""

    def __init__(self, responses: dict[str, Any]):
        self.responses = responses
        self.calls: list[list[str]] = []

    def __call__(self, args, capture_output=True, timeout=None):
        self.calls.append(list(args))
        response = self.responses[args[0]]
        if isinstance(response, BaseException):
            raise response
        returncode, stdout, stderr = response
        return subprocess.CompletedProcess(args, returncode, stdout.encode("utf-8"), stderr.encode("utf-8"))


@pytest.fixture
def runner_factory():
    return FakeRunner


# ---------------------------------------------------------------------------
# Données d'exemple
# ---------------------------------------------------------------------------

VER_OUTPUT = "\r\nMicrosoft Windows [Version 10.0.19045.3803]\r\n"

DRIVER_CSV = (
    '"Module Name","Display Name","Description","Driver Type","Start Mode","State","Status",'
    '"Accept Stop","Accept Pause","Paged Pool(bytes)","Code(bytes)","BSS(bytes)","Link Date","Path",'
    '"Init(bytes)"\r\n'
    '"1394ohci","1394 OHCI Compliant Host Controller","1394 OHCI Compliant Host Controller",'
    '"Kernel ","Manual","Stopped","OK","FALSE","FALSE","4,096","200,704","0","",'
    '"C:\\Windows\\system32\\drivers\\1394ohci.sys","4,096"\r\n'
    '"ACPI","Microsoft ACPI Driver","Microsoft ACPI Driver","Kernel ","Boot","Running","OK",'
    '"TRUE","FALSE","0","0","0","3/18/2019 8:50:04 PM","C:\\Windows\\system32\\drivers\\ACPI.sys","0"\r\n'
    '"atapi","IDE Channel","IDE Channel","Kernel ","Manual","Stopped","OK","FALSE","FALSE",'
    '"4,096","20,480","0","12/7/2019 1:08:44 AM","C:\\Windows\\system32\\drivers\\atapi.sys","4,096"\r\n'
)

DRIVER_VERSIONS = {
    "C:\\Windows\\system32\\drivers\\1394ohci.sys": (0x000A0000, 0x4A610001),
    "C:\\Windows\\system32\\drivers\\ACPI.sys": (0x000A0000, 0x4A650D1F),
}

DRIVER_FAILURES = {
    "C:\\Windows\\system32\\drivers\\atapi.sys": ("size", 2),
}

SAMPLE_PROFILE = {
    "SPSoftwareDataType": [
        {
            "_name": "os_overview",
            "boot_volume": "Macintosh HD",
            "kernel_version": "Darwin 23.2.0",
            "os_version": "macOS 14.2.1 (23C71)",
        }
    ],
    "SPExtensionsDataType": [
        {
            "_name": "AppleACPIPlatform",
            "spext_bundleid": "com.apple.driver.AppleACPIPlatform",
            "spext_lastModified": "2023-12-07T08:23:14Z",
            "spext_loaded": "spext_yes",
            "spext_path": "/System/Library/Extensions/AppleACPIPlatform.kext",
            "spext_signed_by": "Software Signing, Apple Code Signing Certification Authority, Apple Root CA",
            "spext_version": "6.1",
            "version": "6.1",
        },
        {
            "_name": "LegacyDriver",
            "spext_lastModified": "2021-05-01T10:00:00Z",
            "spext_path": "/Library/Extensions/LegacyDriver.kext",
            "spext_version": "1.0.3",
        },
    ],
    "SPApplicationsDataType": [
        {
            "_name": "Safari",
            "arch_kind": "arch_arm_i64",
            "lastModified": "2023-12-07T08:23:14Z",
            "obtained_from": "apple",
            "path": "/Applications/Safari.app",
            "signed_by": [
                "Software Signing",
                "Apple Code Signing Certification Authority",
                "Apple Root CA",
            ],
            "version": "17.2.1",
        },
        {
            "_name": "Homemade",
            "arch_kind": "arch_arm",
            "lastModified": "2024-02-10T16:45:00Z",
            "obtained_from": "unknown",
            "path": "/Users/me/Applications/Homemade.app",
        },
    ],
}


@pytest.fixture
def sample_profile() -> dict[str, Any]:
    return json.loads(json.dumps(SAMPLE_PROFILE))


@pytest.fixture
def sample_profile_json(sample_profile) -> str:
    return json.dumps(sample_profile)


@pytest.fixture
def windows_runner(runner_factory) -> FakeRunner:
    return runner_factory({
        "cmd.exe": (0, VER_OUTPUT, ""),
        "driverquery.exe": (0, DRIVER_CSV, ""),
    })


@pytest.fixture
def driver_version_api(version_api_factory) -> FakeVersionApi:
    return version_api_factory(DRIVER_VERSIONS, DRIVER_FAILURES)


@pytest.fixture
def ver_output() -> str:
    return VER_OUTPUT


@pytest.fixture
def driver_csv() -> str:
    return DRIVER_CSV
