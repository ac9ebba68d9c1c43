"""
Hiérarchie d'exceptions de l'inventaire

Toutes les erreurs publiques héritent de UnisbomError, ce qui permet au
point d'entrée de les intercepter en une seule fois sans masquer les
erreurs inattendues :
- Erreurs fatales de collecte (outil externe, schéma, registre)
- Erreur de plateforme non supportée
- Erreurs non fatales de ressource de version
"""

from typing import Optional


class UnisbomError(Exception):
    """Exception de base pour toutes les erreurs de l'inventaire"""


class UnsupportedPlatformError(UnisbomError):
    """Levée par le dispatcher quand aucun collecteur n'existe pour l'OS courant"""

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(f"unsupported operating system: {platform}")


class ConfigError(UnisbomError):
    """Configuration invalide"""


class OutputError(UnisbomError):
    """Le rendu ou l'écriture de l'inventaire a échoué"""


class CollectionError(UnisbomError):
    """
    Erreur fatale pour une phase de collecte

    Toute sous-classe interrompt la phase concernée (OS, pilotes ou
    applications) et remonte jusqu'au point d'entrée.
    """


class ExternalToolError(CollectionError):
    """L'utilitaire externe n'a pas pu être lancé ou a terminé en erreur"""

    def __init__(self, tool: str, exit_status: Optional[int], stderr: str = ""):
        self.tool = tool
        self.exit_status = exit_status
        self.stderr = stderr

        if exit_status is None:
            message = f"could not execute {tool}: {stderr}"
        else:
            message = f"{tool} exit status {exit_status}: {stderr!r}"
        super().__init__(message)


class SchemaDecodeError(CollectionError):
    """La sortie structurée ne correspond pas à la forme d'enregistrement attendue"""

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"could not parse {source} output: {detail}")


class DateTimeParseError(SchemaDecodeError):
    """Un horodatage requis est présent mais mal formé"""

    def __init__(self, raw_value: str, detail: str = ""):
        self.raw_value = raw_value
        message = f"could not parse datetime '{raw_value}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__("datetime", message)


class RegistryAccessError(CollectionError):
    """Une clé du registre n'a pas pu être ouverte ou interrogée"""

    def __init__(self, key_path: str, detail: str):
        self.key_path = key_path
        self.detail = detail
        super().__init__(f"can't open {key_path}: {detail}")


class VersionResourceError(UnisbomError):
    """
    La ressource de version d'un binaire est indisponible

    Erreur non fatale : le collecteur de pilotes la journalise et laisse
    la version vide.
    """

    # Nom de l'appel natif en échec, renseigné par les sous-classes
    native_call = "version resource query"

    def __init__(self, path: str, native_error_code: int, description: str = ""):
        self.path = path
        self.native_error_code = native_error_code
        self.description = description

        message = f"{self.native_call} failed for {path} with {native_error_code}"
        if description:
            message = f"{message} ({description})"
        super().__init__(message)


class VersionInfoSizeUnavailable(VersionResourceError):
    native_call = "GetFileVersionInfoSizeW"


class VersionInfoLoadFailed(VersionResourceError):
    native_call = "GetFileVersionInfoW"


class VersionBlockQueryFailed(VersionResourceError):
    native_call = "VerQueryValueW"
