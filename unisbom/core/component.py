"""
Modèle de composant partagé par tous les collecteurs

Ce module définit :
- L'énumération fermée des types de composants
- Le composant normalisé produit par chaque plateforme
- Les listes d'éditeurs par défaut de chaque fournisseur d'OS
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Tuple


# Instant zéro utilisé quand aucune date n'est disponible
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

APPLE_DEFAULT_PUBLISHERS: Tuple[str, ...] = (
    "Apple Code Signing Certification Authority",
    "Apple Root CA",
)

MICROSOFT_DEFAULT_PUBLISHERS: Tuple[str, ...] = ("Microsoft",)


class Kind(Enum):
    """Type de composant, détermine l'interprétation des autres champs"""

    APPLICATION = "Application"
    DRIVER = "Driver"
    OS = "OS"
    OTHER = "Other"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Component:
    """
    Unité d'inventaire normalisée

    Un composant est construit une seule fois par collecte puis transmis
    tel quel à l'étape de sortie. L'identifiant retombe sur le nom quand la
    source n'en fournit pas de meilleur.
    """

    kind: Kind
    name: str
    id: str = ""
    version: str = ""
    path: str = ""
    modified: datetime = EPOCH
    publishers: Tuple[str, ...] = ()
    raw_info: str = field(default="", repr=False)

    def __post_init__(self):
        # Les champs texte ne sont jamais None
        for name in ("name", "id", "version", "path", "raw_info"):
            if getattr(self, name) is None:
                object.__setattr__(self, name, "")

        if not self.id:
            object.__setattr__(self, "id", self.name)

        if self.modified is None:
            object.__setattr__(self, "modified", EPOCH)
        elif self.modified.tzinfo is None:
            object.__setattr__(self, "modified", self.modified.replace(tzinfo=timezone.utc))

        if not isinstance(self.publishers, tuple):
            object.__setattr__(self, "publishers", tuple(self.publishers))

    def to_dict(self) -> Dict[str, Any]:
        """
        Convertit le composant en dictionnaire sérialisable en JSON

        Returns:
            dict: Champs du composant, type par nom et date ISO 8601
        """
        return {
            "kind": self.kind.value,
            "name": self.name,
            "id": self.id,
            "version": self.version,
            "path": self.path,
            "modified": self.modified.isoformat(),
            "publishers": list(self.publishers),
            "raw_info": self.raw_info,
        }


def raw_record(record: Any) -> str:
    """Sérialise l'enregistrement source tel quel pour audit"""
    return json.dumps(record, ensure_ascii=False, default=str)


def publishers_of(values: Iterable[str]) -> Tuple[str, ...]:
    """Construit un ensemble ordonné d'éditeurs sans doublons ni vides"""
    seen = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return tuple(seen)
