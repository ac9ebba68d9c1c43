"""
Module de configuration pour l'inventaire

Ce module gère la configuration de l'outil, incluant :
- Valeurs par défaut de chaque section
- Lecture d'un fichier INI optionnel
- Validation des paramètres
- Chemins par défaut selon la plateforme
"""

import os
import sys
import configparser
from typing import Dict, Any, Optional

from .errors import ConfigError

OUTPUT_FORMATS = ('text', 'json')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

# Variable d'environnement qui prime sur le niveau de log configuré
LOG_LEVEL_ENV = 'UNISBOM_LOG'


class InventoryConfig:
    """
    Gestionnaire de configuration de l'inventaire

    Cette classe centralise les paramètres de collecte, de sortie et de
    journalisation. Les valeurs du fichier remplacent les valeurs par défaut.
    """

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialise la configuration

        Args:
            config_file: Chemin vers le fichier de configuration (optionnel)

        Raises:
            ConfigError: Le fichier existe mais n'est pas un INI valide
        """
        self.config = configparser.ConfigParser()
        self.config_file = config_file or self._get_default_config_path()
        self.loaded_from_file = False

        # Définir les valeurs par défaut
        self._set_defaults()

        # Charger la configuration depuis le fichier
        self._load_config()

    def _get_default_config_path(self) -> str:
        """
        Détermine le chemin par défaut du fichier de configuration selon la plateforme

        Returns:
            str: Chemin vers le fichier de configuration
        """
        if sys.platform == "win32":
            return os.path.join(
                os.environ.get("PROGRAMDATA", "C:\\ProgramData"),
                "unisbom",
                "config.ini"
            )
        else:
            return "/etc/unisbom/config.ini"

    def _set_defaults(self):
        """
        Définit les valeurs de configuration par défaut

        Ces valeurs sont utilisées si aucun fichier de configuration n'est trouvé
        ou si certaines sections/clés sont manquantes.
        """
        # Configuration de la collecte
        self.config.add_section('collector')
        self.config.set('collector', 'log_level', 'INFO')
        self.config.set('collector', 'command_timeout', '600')  # 0 = aucun délai
        self.config.set('collector', 'strict_registry', 'false')

        # Configuration de la sortie
        self.config.add_section('output')
        self.config.set('output', 'format', 'text')
        self.config.set('output', 'destination', 'stdout')

        # Configuration logging
        self.config.add_section('logging')
        self.config.set('logging', 'log_file', '')
        self.config.set('logging', 'max_log_size', '10485760')  # 10MB
        self.config.set('logging', 'backup_count', '5')

    def _load_config(self):
        """
        Charge la configuration depuis le fichier

        Si le fichier n'existe pas, les valeurs par défaut sont conservées.
        """
        if not os.path.exists(self.config_file):
            return

        try:
            self.config.read(self.config_file, encoding='utf-8')
        except configparser.Error as e:
            raise ConfigError(f"invalid configuration file {self.config_file}: {e}") from e

        self.loaded_from_file = True

    def get(self, section: str, option: str, fallback: Any = None) -> str:
        """
        Récupère une valeur de configuration

        Args:
            section: Nom de la section
            option: Nom de l'option
            fallback: Valeur par défaut si non trouvée

        Returns:
            str: Valeur de configuration
        """
        return self.config.get(section, option, fallback=fallback)

    def getboolean(self, section: str, option: str, fallback: bool = False) -> bool:
        """
        Récupère une valeur booléenne de configuration

        Raises:
            ConfigError: La valeur n'est pas un booléen
        """
        try:
            return self.config.getboolean(section, option, fallback=fallback)
        except ValueError as e:
            raise ConfigError(f"[{section}] {option}: {e}") from e

    def getint(self, section: str, option: str, fallback: int = 0) -> int:
        """
        Récupère une valeur entière de configuration

        Raises:
            ConfigError: La valeur n'est pas un entier
        """
        try:
            return self.config.getint(section, option, fallback=fallback)
        except ValueError as e:
            raise ConfigError(f"[{section}] {option}: {e}") from e

    def set(self, section: str, option: str, value: Any):
        """
        Définit une valeur de configuration

        Args:
            section: Nom de la section
            option: Nom de l'option
            value: Nouvelle valeur
        """
        if not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, option, str(value))

    def save(self):
        """
        Sauvegarde la configuration dans le fichier

        Crée les dossiers parents si nécessaire.

        Raises:
            ConfigError: Écriture impossible
        """
        try:
            config_dir = os.path.dirname(self.config_file)
            if config_dir and not os.path.exists(config_dir):
                os.makedirs(config_dir, exist_ok=True)

            with open(self.config_file, 'w', encoding='utf-8') as f:
                self.config.write(f)

        except OSError as e:
            raise ConfigError(f"could not save configuration to {self.config_file}: {e}") from e

    def get_collector_config(self) -> Dict[str, Any]:
        """
        Récupère la configuration de collecte

        Returns:
            dict: Configuration de collecte
        """
        return {
            'log_level': self.get_log_level(),
            'command_timeout': self.getint('collector', 'command_timeout', 600),
            'strict_registry': self.getboolean('collector', 'strict_registry', False)
        }

    def get_output_config(self) -> Dict[str, Any]:
        """
        Récupère la configuration de sortie

        Returns:
            dict: Format ('text' ou 'json') et destination ('stdout' ou chemin)
        """
        return {
            'format': self.get('output', 'format', 'text').lower(),
            'destination': self.get('output', 'destination', 'stdout')
        }

    def get_logging_config(self) -> Dict[str, Any]:
        """
        Récupère la configuration de journalisation

        Returns:
            dict: Configuration logging
        """
        return {
            'log_level': self.get_log_level(),
            'log_file': self.get('logging', 'log_file', ''),
            'max_log_size': self.getint('logging', 'max_log_size', 10485760),
            'backup_count': self.getint('logging', 'backup_count', 5)
        }

    def get_log_level(self) -> str:
        """Niveau de log effectif, la variable UNISBOM_LOG étant prioritaire"""
        level = os.environ.get(LOG_LEVEL_ENV) or self.get('collector', 'log_level', 'INFO')
        return level.upper()

    def validate(self) -> bool:
        """
        Valide la configuration courante

        Returns:
            bool: True si la configuration est valide

        Raises:
            ConfigError: Liste de toutes les erreurs détectées
        """
        errors = []

        # Valider le niveau de log
        if self.get_log_level() not in LOG_LEVELS:
            errors.append(f"Niveau de log invalide (doit être: {', '.join(LOG_LEVELS)})")

        # Valider le format de sortie
        output_format = self.get('output', 'format', 'text').lower()
        if output_format not in OUTPUT_FORMATS:
            errors.append(f"Format de sortie invalide (doit être: {', '.join(OUTPUT_FORMATS)})")

        if not self.get('output', 'destination', ''):
            errors.append("Destination de sortie vide")

        # Valider les entiers
        for section, option in (('collector', 'command_timeout'),
                                ('logging', 'max_log_size'),
                                ('logging', 'backup_count')):
            try:
                if self.config.getint(section, option) < 0:
                    errors.append(f"[{section}] {option} doit être positif")
            except ValueError:
                errors.append(f"[{section}] {option} doit être un entier")

        try:
            self.config.getboolean('collector', 'strict_registry')
        except ValueError:
            errors.append("[collector] strict_registry doit être un booléen")

        if errors:
            raise ConfigError("; ".join(errors))

        return True


def create_default_config(config_path: str) -> InventoryConfig:
    """
    Crée un fichier de configuration par défaut

    Args:
        config_path: Chemin où créer le fichier de configuration

    Returns:
        InventoryConfig: Instance de configuration créée
    """
    config = InventoryConfig(config_path)
    config.save()
    return config
