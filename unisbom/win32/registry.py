"""
Lecture des clés de désinstallation du registre Windows

Ce module parcourt les racines "Uninstall" du registre (vue 64 bits et
vue WOW64 redirigée) et produit une entrée par sous-clé :
- Nom de la sous-clé et date de dernière écriture
- Toutes les valeurs nommées décodées en texte
- Tolérance aux valeurs illisibles, sous-clés en échec selon le mode strict
"""

import logging
import struct
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from ..core.errors import RegistryAccessError
from .wstring import from_wide

logger = logging.getLogger(__name__)

UNINSTALL_ROOTS = (
    r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall",
    r"SOFTWARE\Wow6432Node\Microsoft\Windows\CurrentVersion\Uninstall",
)

# Types de valeurs (mêmes valeurs numériques que winreg)
REG_NONE = 0
REG_SZ = 1
REG_EXPAND_SZ = 2
REG_BINARY = 3
REG_DWORD = 4
REG_DWORD_BIG_ENDIAN = 5
REG_LINK = 6
REG_MULTI_SZ = 7
REG_QWORD = 11

STRING_TYPES = (REG_SZ, REG_EXPAND_SZ, REG_MULTI_SZ)

ERROR_NO_MORE_ITEMS = 259

# Origine des FILETIME : 1601-01-01, par pas de 100 ns
FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)


@dataclass
class UninstallEntry:
    """Enregistrement intermédiaire d'une sous-clé de désinstallation"""

    key_name: str
    modified: datetime
    properties: Dict[str, str] = field(default_factory=dict)


def filetime_to_datetime(ticks: int) -> datetime:
    """Convertit un FILETIME (100 ns depuis 1601) en datetime UTC"""
    return FILETIME_EPOCH + timedelta(microseconds=ticks // 10)


def _raw_bytes(data: Any, value_type: int) -> bytes:
    if data is None:
        return b""
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, int):
        if value_type == REG_DWORD_BIG_ENDIAN:
            return struct.pack(">I", data & 0xFFFFFFFF)
        if value_type == REG_QWORD or data > 0xFFFFFFFF:
            return struct.pack("<Q", data & 0xFFFFFFFFFFFFFFFF)
        return struct.pack("<I", data & 0xFFFFFFFF)
    if isinstance(data, str):
        return data.encode("utf-16-le")
    if isinstance(data, (list, tuple)):
        return "\x00".join(data).encode("utf-16-le")
    return repr(data).encode("utf-8")


def decode_value(data: Any, value_type: int) -> str:
    """
    Décode une valeur de registre typée en texte

    Args:
        data: Données brutes (octets UTF-16) ou déjà converties par winreg
        value_type: Type natif de la valeur (REG_*)

    Returns:
        str: Texte de la valeur ; liste séparée par des retours à la ligne
        pour REG_MULTI_SZ, forme opaque des octets pour les autres types
    """
    if value_type not in STRING_TYPES:
        return str(list(_raw_bytes(data, value_type)))

    if isinstance(data, (list, tuple)):
        text = "\n".join(item.rstrip("\x00") for item in data)
    elif isinstance(data, (bytes, bytearray, memoryview)):
        text = from_wide(data)
    elif data is None:
        text = ""
    else:
        text = str(data).rstrip("\x00")

    if value_type == REG_MULTI_SZ:
        text = text.replace("\x00", "\n")

    return text


class RegistryReader:
    """
    Lecteur des racines de désinstallation

    Le module d'accès au registre est injectable (winreg par défaut) afin
    de pouvoir rejouer une arborescence en dehors de Windows.
    """

    def __init__(self, registry=None, hive=None, strict: bool = False):
        """
        Initialise le lecteur

        Args:
            registry: Module compatible winreg
            hive: Ruche racine (HKEY_LOCAL_MACHINE par défaut)
            strict: Interrompre la lecture sur la première sous-clé en échec
        """
        if registry is None:
            import winreg as registry

        self.registry = registry
        self.hive = hive if hive is not None else registry.HKEY_LOCAL_MACHINE
        self.strict = strict

    def read_uninstall_entries(self, roots: Sequence[str] = UNINSTALL_ROOTS) -> List[UninstallEntry]:
        """
        Lit toutes les sous-clés des racines de désinstallation

        Args:
            roots: Chemins des racines à parcourir, dans l'ordre

        Returns:
            list: Entrées trouvées, racine par racine

        Raises:
            RegistryAccessError: Une racine n'a pas pu être ouverte
        """
        found = []
        for root in roots:
            found.extend(self.read_root(root))
        return found

    def read_root(self, root: str) -> List[UninstallEntry]:
        """
        Lit les sous-clés immédiates d'une racine

        Args:
            root: Chemin de la racine sous la ruche

        Returns:
            list: Une entrée par sous-clé lisible
        """
        try:
            key = self.registry.OpenKey(self.hive, root)
        except OSError as e:
            raise RegistryAccessError(root, str(e)) from e

        entries = []
        try:
            try:
                subkey_count = self.registry.QueryInfoKey(key)[0]
            except OSError as e:
                raise RegistryAccessError(root, f"can't query info: {e}") from e

            for index in range(subkey_count):
                try:
                    name = self.registry.EnumKey(key, index)
                except OSError as e:
                    if getattr(e, "winerror", None) == ERROR_NO_MORE_ITEMS:
                        break
                    self._sub_key_failed(f"{root}\\#{index}", e)
                    continue

                entry = self._read_entry(key, root, name)
                if entry is not None:
                    entries.append(entry)
        finally:
            self.registry.CloseKey(key)

        logger.debug(f"{root}: {len(entries)} entrées lues")
        return entries

    def _sub_key_failed(self, key_path: str, error: Exception) -> None:
        if self.strict:
            raise RegistryAccessError(key_path, str(error)) from error
        logger.warning(f"Sous-clé ignorée {key_path}: {error}")

    def _read_entry(self, parent, root: str, name: str) -> Optional[UninstallEntry]:
        """
        Lit une sous-clé et toutes ses valeurs

        Returns:
            UninstallEntry: Entrée lue, ou None si la sous-clé est ignorée
        """
        key_path = f"{root}\\{name}"

        try:
            sub_key = self.registry.OpenKey(parent, name)
        except OSError as e:
            self._sub_key_failed(key_path, e)
            return None

        try:
            try:
                _, value_count, last_write = self.registry.QueryInfoKey(sub_key)
            except OSError as e:
                self._sub_key_failed(key_path, e)
                return None

            return UninstallEntry(
                key_name=name,
                modified=filetime_to_datetime(last_write),
                properties=self._read_properties(sub_key, value_count, key_path),
            )
        finally:
            self.registry.CloseKey(sub_key)

    def _read_properties(self, key, value_count: int, key_path: str) -> Dict[str, str]:
        """Décode les valeurs nommées d'une clé, les valeurs illisibles sont omises"""
        properties = {}

        for index in range(value_count):
            try:
                name, data, value_type = self.registry.EnumValue(key, index)
            except OSError as e:
                if getattr(e, "winerror", None) == ERROR_NO_MORE_ITEMS:
                    break
                logger.debug(f"Valeur #{index} illisible dans {key_path}: {e}")
                continue

            properties[name] = decode_value(data, value_type)

        return properties
