"""
Module collecteur principal de l'inventaire

Ce module orchestre la collecte :
- Sélection du collecteur de la plateforme courante
- Échec immédiat sur un système non supporté
- Suivi de la durée et du nombre de composants collectés
"""

import sys
import time
import logging
from typing import Any, Dict, List, Optional

from .component import Component
from .errors import UnsupportedPlatformError


def get_collector(config=None, logger: Optional[logging.Logger] = None, platform: Optional[str] = None, **kwargs):
    """
    Sélectionne et prépare le collecteur de la plateforme

    Args:
        config: Instance de InventoryConfig
        logger: Logger transmis au collecteur
        platform: Plateforme cible (sys.platform par défaut)
        **kwargs: Dépendances transmises au constructeur du collecteur

    Returns:
        BaseCollector: Collecteur prêt (setup() effectué)

    Raises:
        UnsupportedPlatformError: Aucun collecteur pour cette plateforme
    """
    platform = platform or sys.platform

    if platform == "darwin":
        from ..collectors.platform.macos import MacOSCollector
        collector_class = MacOSCollector

    elif platform == "win32":
        from ..collectors.platform.windows import WindowsCollector
        collector_class = WindowsCollector

    else:
        raise UnsupportedPlatformError(platform)

    collector = collector_class(config, logger, **kwargs)
    collector.setup()
    return collector


class InventoryCollector:
    """
    Collecteur principal qui orchestre une collecte d'inventaire

    Chaque appel à collect_all() produit un nouvel instantané ; toute
    erreur fatale remonte à l'appelant sans résultat partiel.
    """

    def __init__(self, config, logger, platform: Optional[str] = None):
        """
        Initialise le collecteur principal

        Args:
            config: Instance de InventoryConfig
            logger: Instance de InventoryLogger
            platform: Plateforme cible (sys.platform par défaut)
        """
        self.config = config
        self.logger = logger.get_logger()
        self.platform = platform or sys.platform

        self._platform_collector = None
        self._last_collection_duration = None
        self._last_count = 0

    def collect_all(self) -> List[Component]:
        """
        Lance la collecte complète d'inventaire

        Returns:
            list: Composants normalisés, OS puis pilotes puis applications

        Raises:
            UnisbomError: Plateforme non supportée ou phase de collecte en échec
        """
        start_time = time.time()
        self.logger.info(f"Début de collecte d'inventaire ({self.platform})")

        if self._platform_collector is None:
            self._platform_collector = get_collector(self.config, self.logger, self.platform)

        components = self._platform_collector.collect()

        self._last_collection_duration = time.time() - start_time
        self._last_count = len(components)
        self.logger.info(f"Collecte terminée en {self._last_collection_duration:.2f} secondes: "
                         f"{len(components)} composant(s)")

        return components

    def get_collection_stats(self) -> Dict[str, Any]:
        """
        Retourne les statistiques de la dernière collecte

        Returns:
            dict: Statistiques de collecte
        """
        if self._last_collection_duration is None:
            return {'status': 'no_collection_yet'}

        stats = {
            'status': 'success',
            'collection_duration': round(self._last_collection_duration, 2),
            'components_count': self._last_count,
        }
        stats.update(self._platform_collector.get_collection_stats())
        return stats
