"""
Module de logging pour l'inventaire

Ce module fournit un système de logging centralisé avec :
- Sortie console sur stderr (stdout est réservé au rapport)
- Fichier de log optionnel avec rotation automatique
- Formatage cohérent
"""

import os
import sys
import logging
import logging.handlers

LOGGER_NAME = 'unisbom'


class InventoryLogger:
    """
    Gestionnaire de logging de l'inventaire

    Configure le logger racine du package ; les modules utilisent
    logging.getLogger(__name__) et héritent de ces handlers.
    """

    def __init__(self, config=None, level: str = None):
        """
        Initialise le système de logging

        Args:
            config: Instance de InventoryConfig pour récupérer les paramètres de log
            level: Niveau imposé (prioritaire sur la configuration)
        """
        self.config = config
        self.logger = logging.getLogger(LOGGER_NAME)
        self.log_file = ''

        # Éviter la duplication si déjà configuré
        if not self.logger.handlers:
            self._setup_logging(level)

    def _setup_logging(self, level: str = None):
        """
        Configure le système de logging avec les handlers appropriés

        Configure :
        - Le niveau de log basé sur la configuration
        - La sortie console sur stderr
        - La rotation du fichier de log s'il est configuré
        """
        if self.config:
            logging_config = self.config.get_logging_config()
        else:
            logging_config = {
                'log_level': 'INFO',
                'log_file': '',
                'max_log_size': 10485760,  # 10MB
                'backup_count': 5
            }

        log_level_str = level or logging_config['log_level']
        log_level = getattr(logging, log_level_str.upper(), logging.INFO)
        self.logger.setLevel(log_level)

        # Handler console, format simplifié
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(fmt='%(levelname)s - %(message)s'))
        self.logger.addHandler(console_handler)

        log_file = logging_config['log_file']
        if log_file:
            formatter = logging.Formatter(
                fmt='%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )

            try:
                log_dir = os.path.dirname(log_file)
                if log_dir and not os.path.exists(log_dir):
                    os.makedirs(log_dir, exist_ok=True)

                file_handler = logging.handlers.RotatingFileHandler(
                    filename=log_file,
                    maxBytes=logging_config['max_log_size'],
                    backupCount=logging_config['backup_count'],
                    encoding='utf-8'
                )
                file_handler.setLevel(log_level)
                file_handler.setFormatter(formatter)
                self.logger.addHandler(file_handler)
                self.log_file = log_file

            except OSError as e:
                self.logger.warning(f"Fichier de log inutilisable {log_file}: {e}")

        self.logger.debug(f"Système de logging initialisé (niveau {log_level_str.upper()})")

    def get_logger(self) -> logging.Logger:
        """
        Retourne l'instance du logger

        Returns:
            logging.Logger: Instance du logger configuré
        """
        return self.logger

    def debug(self, message: str):
        """Log un message de niveau DEBUG"""
        self.logger.debug(message)

    def error(self, message: str):
        """Log un message de niveau ERROR"""
        self.logger.error(message)

    def log_system_info(self):
        """Log les informations système de base au démarrage"""
        self.debug(f"Plateforme: {sys.platform}")
        self.debug(f"Version Python: {sys.version.split()[0]}")

    def log_config_info(self, config):
        """
        Log la configuration effective

        Args:
            config: Instance de InventoryConfig
        """
        source = config.config_file if config.loaded_from_file else "valeurs par défaut"
        self.debug(f"Configuration: {source}")

        for key, value in config.get_collector_config().items():
            self.debug(f"Collector.{key}: {value}")

        for key, value in config.get_output_config().items():
            self.debug(f"Output.{key}: {value}")
