"""
Collecteur spécifique Windows pour l'inventaire logiciel

Ce module combine plusieurs sources natives :
- La commande "ver" pour la version du système
- driverquery.exe (sortie CSV) pour les pilotes
- Les ressources de version des fichiers pilotes
- Les clés de désinstallation du registre pour les applications
"""

import csv
import io
import re
from typing import Any, Dict, List, Optional

from ...core.component import EPOCH, MICROSOFT_DEFAULT_PUBLISHERS, Component, Kind, raw_record
from ...core.errors import SchemaDecodeError, VersionResourceError
from ...win32.registry import RegistryReader, UninstallEntry
from ...win32.version import Win32VersionApi, get_file_version
from ..base import BaseCollector
from ..fields import first_non_empty, first_present, parse_driver_link_date

OS_NAME = "Microsoft Windows"

VER_COMMAND = ["cmd.exe", "/c", "ver"]
DRIVERQUERY_COMMAND = ["driverquery.exe", "/v", "/FO", "CSV"]

# Colonnes de driverquery indispensables à la normalisation
DRIVER_REQUIRED_COLUMNS = ("Module Name", "Display Name", "Link Date", "Path")

APP_VERSION_FIELDS = ("DisplayVersion", "Version")
APP_PATH_FIELDS = ("InstallLocation", "InstallSource", "BundleCachePath")

_VER_PATTERN = re.compile(r"\[Version ([^\]]*)\]")


def parse_ver_output(output: str) -> str:
    """
    Extrait le numéro de version de la sortie de "ver"

    Args:
        output: Texte du type "Microsoft Windows [Version 10.0.19045.3803]"

    Returns:
        str: Numéro de version

    Raises:
        SchemaDecodeError: Aucun marqueur de version dans la sortie
    """
    match = _VER_PATTERN.search(output)
    if match is None:
        raise SchemaDecodeError("ver", f"no version marker in {output.strip()!r}")
    return match.group(1).strip()


def parse_driver_csv(output: str) -> List[Dict[str, str]]:
    """
    Analyse la sortie CSV de driverquery

    Args:
        output: Sortie brute de "driverquery /v /FO CSV"

    Returns:
        list: Un dictionnaire par pilote, indexé par nom de colonne

    Raises:
        SchemaDecodeError: Colonne requise absente ou enregistrement incomplet
    """
    reader = csv.DictReader(io.StringIO(output.lstrip("\ufeff")))
    if reader.fieldnames is None:
        return []

    missing = [column for column in DRIVER_REQUIRED_COLUMNS if column not in reader.fieldnames]
    if missing:
        raise SchemaDecodeError("driverquery", f"missing column(s) {', '.join(missing)}")

    records = []
    for line_number, row in enumerate(reader, start=2):
        if None in row or any(row.get(column) is None for column in reader.fieldnames):
            raise SchemaDecodeError(
                "driverquery", f"record on line {line_number} has {len(row)} fields, "
                               f"expected {len(reader.fieldnames)}"
            )
        records.append(row)
    return records


def application_from_entry(entry: UninstallEntry) -> Component:
    """
    Construit un composant Application à partir d'une entrée du registre

    Args:
        entry: Sous-clé de désinstallation décodée

    Returns:
        Component: Application normalisée, identifiée par le nom de sous-clé
    """
    properties = entry.properties
    return Component(
        kind=Kind.APPLICATION,
        name=properties.get("DisplayName", ""),
        id=entry.key_name,
        version=first_present(properties, APP_VERSION_FIELDS),
        path=first_non_empty(properties, APP_PATH_FIELDS),
        modified=entry.modified,
        publishers=(properties["Publisher"],) if "Publisher" in properties else (),
        raw_info=raw_record({
            "key": entry.key_name,
            "modified": entry.modified.isoformat(),
            "properties": properties,
        }),
    )


class WindowsCollector(BaseCollector):
    """
    Collecteur spécifique pour Windows

    Les phases sont exécutées dans l'ordre OS, pilotes, applications.
    Seul l'échec de lecture de la version d'un pilote est toléré : il est
    journalisé et la version reste vide.
    """

    REQUIRED_TOOLS = ("cmd.exe", "driverquery.exe")

    def __init__(self, config=None, logger=None, runner=None,
                 registry_reader: Optional[RegistryReader] = None, version_api=None):
        """
        Initialise le collecteur Windows

        Args:
            config: Instance de InventoryConfig
            logger: Logger à utiliser
            runner: Fonction de lancement de processus
            registry_reader: Lecteur du registre (créé à la demande sinon)
            version_api: Accès à version.dll (Win32VersionApi à la demande sinon)
        """
        super().__init__(config, logger, runner)
        self._registry_reader = registry_reader
        self._version_api = version_api

    @property
    def registry_reader(self) -> RegistryReader:
        if self._registry_reader is None:
            self._registry_reader = RegistryReader(strict=self.strict_registry)
        return self._registry_reader

    @property
    def version_api(self):
        if self._version_api is None:
            self._version_api = Win32VersionApi()
        return self._version_api

    def collect(self) -> List[Component]:
        """
        Collecte le système, les pilotes et les applications

        Returns:
            list: OS, puis pilotes, puis applications
        """
        self._start_collection()
        self.logger.info("Collecte des applications et pilotes, veuillez patienter...")

        os_components = self._record_phase("OS", [self.collect_os()])
        drivers = self._record_phase("Pilotes", self.collect_drivers())
        apps = self._record_phase("Applications", self.collect_apps())

        self.last_collection_duration = self._end_collection()
        return os_components + drivers + apps

    def collect_os(self) -> Component:
        """
        Crée le pseudo-composant du système d'exploitation

        Returns:
            Component: Composant de type OS
        """
        output = self._run_command(VER_COMMAND)
        return Component(
            kind=Kind.OS,
            name=OS_NAME,
            id=OS_NAME,
            version=parse_ver_output(output),
            path="/",
            modified=EPOCH,
            publishers=MICROSOFT_DEFAULT_PUBLISHERS,
            raw_info=raw_record({"ver": output.strip()}),
        )

    def collect_drivers(self) -> List[Component]:
        """
        Collecte les pilotes via driverquery

        Returns:
            list: Composants de type Driver
        """
        output = self._run_command(DRIVERQUERY_COMMAND)

        components = []
        for record in parse_driver_csv(output):
            components.append(self._driver_from_record(record))
        return components

    def _driver_from_record(self, record: Dict[str, Any]) -> Component:
        path = record["Path"]
        return Component(
            kind=Kind.DRIVER,
            name=record["Display Name"],
            id=record["Module Name"],
            version=self._driver_version(path),
            path=path,
            modified=parse_driver_link_date(record["Link Date"]) or EPOCH,
            raw_info=raw_record(record),
        )

    def _driver_version(self, path: str) -> str:
        """
        Lit la version d'un pilote, vide en cas d'échec

        Returns:
            str: Version "a.b.c.d" ou chaîne vide
        """
        if not path:
            self.logger.debug("Pilote sans chemin, version ignorée")
            return ""

        try:
            return get_file_version(path, api=self.version_api)
        except VersionResourceError as e:
            self.logger.warning(str(e))
            return ""

    def collect_apps(self) -> List[Component]:
        """
        Collecte les applications déclarées dans le registre

        Returns:
            list: Composants de type Application
        """
        components = []
        for entry in self.registry_reader.read_uninstall_entries():
            if "DisplayName" in entry.properties:
                components.append(application_from_entry(entry))
            else:
                self.logger.debug(f"Entrée de désinstallation ignorée: {entry.key_name}")
        return components
