"""
Règles de dérivation des champs de composants

Les sources natives proposent souvent plusieurs champs candidats pour une
même information. Les fonctions de ce module rendent l'ordre de priorité
explicite : le premier candidat retenu gagne, les suivants sont ignorés.
"""

import re
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence, Tuple

from ..core.component import publishers_of
from ..core.errors import DateTimeParseError

# Format de la colonne "Link Date" de driverquery
DRIVER_LINK_DATE_FORMAT = "%m/%d/%Y %I:%M:%S %p"


def first_non_empty(record: Mapping[str, Any], keys: Sequence[str], default: str = "") -> str:
    """
    Retourne la première valeur non vide parmi les clés candidates

    Args:
        record: Enregistrement source
        keys: Clés candidates, par ordre de priorité

    Returns:
        str: Première valeur non vide, ou default
    """
    for key in keys:
        value = record.get(key)
        if value:
            return str(value)
    return default


def first_present(record: Mapping[str, Any], keys: Sequence[str], default: str = "") -> str:
    """
    Retourne la valeur de la première clé présente, même vide

    Args:
        record: Enregistrement source
        keys: Clés candidates, par ordre de priorité

    Returns:
        str: Valeur de la première clé présente, ou default
    """
    for key in keys:
        if key in record and record[key] is not None:
            return str(record[key])
    return default


def as_publishers(value: Any) -> Tuple[str, ...]:
    """
    Normalise un champ signataire/éditeur en séquence

    Une chaîne unique devient une séquence à un élément, sans découpage.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        return publishers_of([value])
    return publishers_of(str(item) for item in value)


def parse_iso_datetime(raw: Any) -> datetime:
    """
    Analyse un horodatage ISO 8601 (suffixe Z accepté)

    Raises:
        DateTimeParseError: Valeur absente ou mal formée
    """
    if not isinstance(raw, str) or not raw.strip():
        raise DateTimeParseError(str(raw), "expected an ISO 8601 string")

    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        value = datetime.fromisoformat(text)
    except ValueError as e:
        raise DateTimeParseError(raw, str(e)) from e

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_driver_link_date(raw: str) -> Optional[datetime]:
    """
    Analyse la date de liaison d'un pilote ("3/18/2019 8:50:04 PM")

    Returns:
        datetime: Date UTC, ou None si la colonne est vide

    Raises:
        DateTimeParseError: Date présente mais mal formée
    """
    if raw is None or not raw.strip():
        return None

    # Jour et heure peuvent être complétés par des espaces
    text = re.sub(r"\s+", " ", raw.strip()).replace("/ ", "/")

    try:
        value = datetime.strptime(text, DRIVER_LINK_DATE_FORMAT)
    except ValueError as e:
        raise DateTimeParseError(raw, str(e)) from e

    return value.replace(tzinfo=timezone.utc)
