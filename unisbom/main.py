"""
Point d'entrée principal de unisbom

Ce module assemble les composants de l'outil et exécute une collecte
unique :
- Chargement et validation de la configuration
- Initialisation du logging
- Collecte via le collecteur de la plateforme (ou rejeu d'un export JSON)
- Écriture du rapport texte ou JSON
"""

import sys
import argparse
from typing import List, Optional

from unisbom.core.config import InventoryConfig, create_default_config, OUTPUT_FORMATS, LOG_LEVELS
from unisbom.core.logger import InventoryLogger
from unisbom.core.collector import InventoryCollector
from unisbom.core.component import Component
from unisbom.core.errors import ConfigError, UnisbomError
from unisbom.core.output import write_components
from unisbom.collectors.platform.macos import MacOSCollector


class UnisbomApp:
    """
    Application unisbom

    Cette classe relie configuration, logging, collecte et sortie pour
    une exécution ponctuelle : un instantané, puis fin du processus.
    """

    def __init__(self, config: InventoryConfig, log_level: Optional[str] = None):
        """
        Initialise l'application

        Args:
            config: Configuration validée
            log_level: Niveau de log imposé par la ligne de commande
        """
        self.config = config

        self.logger = InventoryLogger(self.config, level=log_level)
        self.app_logger = self.logger.get_logger()
        self.logger.log_system_info()
        self.logger.log_config_info(self.config)

        self.collector = InventoryCollector(self.config, self.logger)

    def collect(self, profile_path: Optional[str] = None) -> List[Component]:
        """
        Effectue la collecte

        Args:
            profile_path: Export JSON de system_profiler à rejouer (optionnel)

        Returns:
            list: Composants collectés
        """
        if profile_path:
            self.app_logger.info(f"Lecture de l'export system_profiler: {profile_path}")
            try:
                with open(profile_path, 'r', encoding='utf-8', errors='replace') as f:
                    document = f.read()
            except OSError as e:
                raise ConfigError(f"can't read {profile_path}: {e}") from e

            return MacOSCollector(self.config, self.app_logger).collect_from_json(document)

        return self.collector.collect_all()

    def write(self, components: List[Component]):
        """Écrit les composants selon la configuration de sortie"""
        output_config = self.config.get_output_config()
        write_components(components, output_config['format'], output_config['destination'])

        if output_config['destination'] != 'stdout':
            self.app_logger.info(f"Inventaire sauvegardé dans: {output_config['destination']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='unisbom',
        description='Build a software bill of materials of the current system.'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        help='Chemin vers le fichier de configuration'
    )

    parser.add_argument(
        '--format', '-f',
        choices=OUTPUT_FORMATS,
        help='Format de sortie : text affiche un résumé par composant, json le détail complet'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        help='Fichier de sortie (stdout par défaut)'
    )

    parser.add_argument(
        '--log-level',
        choices=LOG_LEVELS,
        type=str.upper,
        help='Niveau de log'
    )

    parser.add_argument(
        '--input', '-i',
        type=str,
        help='Rejoue un export JSON de system_profiler au lieu d\'interroger le système'
    )

    parser.add_argument(
        '--create-config',
        action='store_true',
        help='Crée un fichier de configuration par défaut'
    )

    parser.add_argument(
        '--validate-config',
        action='store_true',
        help='Valide la configuration actuelle'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Point d'entrée principal avec gestion des arguments de ligne de commande

    Returns:
        int: Code de sortie (0 succès, 1 erreur)
    """
    args = build_parser().parse_args(argv)

    # Créer une configuration par défaut
    if args.create_config:
        try:
            config = create_default_config(args.config or InventoryConfig().config_file)
            print(f"Configuration par défaut créée: {config.config_file}", file=sys.stderr)
            return 0
        except UnisbomError as e:
            print(f"Erreur création configuration: {e}", file=sys.stderr)
            return 1

    try:
        config = InventoryConfig(args.config)

        # La ligne de commande prime sur le fichier
        if args.format:
            config.set('output', 'format', args.format)
        if args.output:
            config.set('output', 'destination', args.output)
        if args.log_level:
            config.set('collector', 'log_level', args.log_level)

        config.validate()
    except ConfigError as e:
        print(f"Erreur de configuration: {e}", file=sys.stderr)
        return 1

    if args.validate_config:
        print("Configuration valide", file=sys.stderr)
        return 0

    app = None
    try:
        app = UnisbomApp(config, log_level=args.log_level)
        components = app.collect(args.input)
        app.write(components)

    except UnisbomError as e:
        if app is not None:
            app.logger.error(f"Inventaire interrompu: {e}")
        print(f"Erreur: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Arrêt demandé par l'utilisateur", file=sys.stderr)
        return 130

    return 0


if __name__ == '__main__':
    sys.exit(main())
