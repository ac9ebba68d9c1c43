"""
Collecteur spécifique macOS pour l'inventaire logiciel

Ce module interroge system_profiler en une seule invocation JSON :
- SPSoftwareDataType pour la version du système
- SPExtensionsDataType pour les extensions noyau (pilotes)
- SPApplicationsDataType pour les applications
"""

import json
from typing import Any, Dict, List

from ...core.component import APPLE_DEFAULT_PUBLISHERS, EPOCH, Component, Kind, raw_record
from ...core.errors import SchemaDecodeError
from ..base import BaseCollector
from ..fields import as_publishers, first_non_empty, first_present, parse_iso_datetime

SYSTEM_PROFILER = "system_profiler"

SOFTWARE_DATA_TYPE = "SPSoftwareDataType"
EXTENSIONS_DATA_TYPE = "SPExtensionsDataType"
APPLICATIONS_DATA_TYPE = "SPApplicationsDataType"

OS_NAME = "macOS"


class MacOSCollector(BaseCollector):
    """
    Collecteur spécifique pour macOS

    Les trois phases (OS, pilotes, applications) sont extraites du même
    document JSON ; une phase dont un enregistrement ne respecte pas le
    schéma attendu échoue entièrement.
    """

    REQUIRED_TOOLS = (SYSTEM_PROFILER,)

    def collect(self) -> List[Component]:
        """
        Lance system_profiler et normalise sa sortie

        Returns:
            list: OS, puis extensions, puis applications
        """
        self._start_collection()
        self.logger.info("Collecte des applications et pilotes, veuillez patienter...")

        raw_profile = self._run_command([
            SYSTEM_PROFILER,
            SOFTWARE_DATA_TYPE,
            EXTENSIONS_DATA_TYPE,
            APPLICATIONS_DATA_TYPE,
            "-detailLevel", "full",
            "-json",
        ])

        components = self.collect_from_json(raw_profile)

        self.last_collection_duration = self._end_collection()
        return components

    def collect_from_json(self, document: str) -> List[Component]:
        """
        Normalise un document JSON produit par system_profiler

        Args:
            document: Sortie JSON brute

        Returns:
            list: Composants normalisés

        Raises:
            SchemaDecodeError: Document ou enregistrement mal formé
        """
        try:
            profile = json.loads(document)
        except json.JSONDecodeError as e:
            raise SchemaDecodeError(SYSTEM_PROFILER, str(e)) from e

        if not isinstance(profile, dict):
            raise SchemaDecodeError(SYSTEM_PROFILER, "expected a JSON object at top level")

        components = []
        components.extend(self._record_phase("OS", self._collect_os(self._section(profile, SOFTWARE_DATA_TYPE))))
        components.extend(self._record_phase(
            "Pilotes", self._collect_extensions(self._section(profile, EXTENSIONS_DATA_TYPE))
        ))
        components.extend(self._record_phase(
            "Applications", self._collect_applications(self._section(profile, APPLICATIONS_DATA_TYPE))
        ))
        return components

    def _section(self, profile: Dict[str, Any], data_type: str) -> List[Dict[str, Any]]:
        if data_type not in profile:
            raise SchemaDecodeError(SYSTEM_PROFILER, f"missing field `{data_type}`")

        section = profile[data_type]
        if not isinstance(section, list) or not all(isinstance(item, dict) for item in section):
            raise SchemaDecodeError(SYSTEM_PROFILER, f"`{data_type}` must be a list of objects")
        return section

    def _collect_os(self, records: List[Dict[str, Any]]) -> List[Component]:
        """
        Crée le pseudo-composant du système d'exploitation

        Returns:
            list: Un composant par entrée SPSoftwareDataType
        """
        components = []
        for record in records:
            os_version = _require_str(record, "os_version", SOFTWARE_DATA_TYPE)
            components.append(Component(
                kind=Kind.OS,
                name=OS_NAME,
                id=OS_NAME,
                version=os_version.replace("macOS ", ""),
                path="/",
                modified=EPOCH,
                publishers=APPLE_DEFAULT_PUBLISHERS,
                raw_info=raw_record(record),
            ))
        return components

    def _collect_extensions(self, records: List[Dict[str, Any]]) -> List[Component]:
        """
        Normalise les extensions noyau en pilotes

        Returns:
            list: Composants de type Driver
        """
        components = []
        for record in records:
            name = _require_str(record, "_name", EXTENSIONS_DATA_TYPE)
            path = _require_str(record, "spext_path", EXTENSIONS_DATA_TYPE)
            modified = _require_datetime(record, "spext_lastModified", EXTENSIONS_DATA_TYPE)

            components.append(Component(
                kind=Kind.DRIVER,
                name=name,
                id=first_non_empty(record, ("spext_bundleid",), default=name),
                version=first_present(record, ("version", "spext_version")),
                path=path,
                modified=modified,
                publishers=as_publishers(record.get("spext_signed_by")),
                raw_info=raw_record(record),
            ))
        return components

    def _collect_applications(self, records: List[Dict[str, Any]]) -> List[Component]:
        """
        Normalise les applications

        Returns:
            list: Composants de type Application
        """
        components = []
        for record in records:
            name = _require_str(record, "_name", APPLICATIONS_DATA_TYPE)
            path = _require_str(record, "path", APPLICATIONS_DATA_TYPE)
            modified = _require_datetime(record, "lastModified", APPLICATIONS_DATA_TYPE)

            signed_by = record.get("signed_by", [])
            if not isinstance(signed_by, (list, str)):
                raise SchemaDecodeError(APPLICATIONS_DATA_TYPE, f"invalid `signed_by` for {name}")

            components.append(Component(
                kind=Kind.APPLICATION,
                name=name,
                id=name,
                version=first_present(record, ("version",)),
                path=path,
                modified=modified,
                publishers=as_publishers(signed_by),
                raw_info=raw_record(record),
            ))
        return components


def _require_str(record: Dict[str, Any], key: str, source: str) -> str:
    value = record.get(key)
    if not isinstance(value, str):
        problem = "missing" if value is None else "invalid"
        raise SchemaDecodeError(source, f"{problem} field `{key}`")
    return value


def _require_datetime(record: Dict[str, Any], key: str, source: str):
    if key not in record:
        raise SchemaDecodeError(source, f"missing field `{key}`")
    return parse_iso_datetime(record[key])
