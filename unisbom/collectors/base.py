"""
Classe de base pour tous les collecteurs de l'inventaire

Ce module définit le contrat commun des collecteurs de plateforme
(setup puis collect) ainsi que les utilitaires partagés :
- Lancement des outils système et capture de leur sortie
- Suivi de la durée de chaque phase de collecte
"""

import logging
import shutil
import subprocess
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..core.component import Component
from ..core.errors import ExternalToolError


class BaseCollector(ABC):
    """
    Classe de base abstraite pour les collecteurs de plateforme

    Une sous-classe déclare les outils dont elle a besoin dans
    REQUIRED_TOOLS et implémente collect().
    """

    # Outils externes vérifiés par setup()
    REQUIRED_TOOLS: Sequence[str] = ()

    def __init__(self, config=None, logger: Optional[logging.Logger] = None,
                 runner: Optional[Callable[..., subprocess.CompletedProcess]] = None):
        """
        Initialise le collecteur de base

        Args:
            config: Instance de InventoryConfig (optionnelle)
            logger: Logger à utiliser (logger du module par défaut)
            runner: Fonction de lancement de processus (subprocess.run par défaut)
        """
        self.config = config
        self.logger = logger or logging.getLogger(self.__class__.__module__)
        self.runner = runner or subprocess.run

        collector_config = config.get_collector_config() if config else {}
        self.command_timeout = collector_config.get('command_timeout', 0) or None
        self.strict_registry = collector_config.get('strict_registry', False)

        # Métadonnées du collecteur
        self.collector_name = self.__class__.__name__
        self.collection_start_time = None
        self.last_collection_duration = 0.0
        self.phase_counts: Dict[str, int] = {}

    def setup(self) -> None:
        """
        Prépare le collecteur avant toute collecte

        Raises:
            ExternalToolError: Un outil requis est introuvable
        """
        for tool in self.REQUIRED_TOOLS:
            if shutil.which(tool) is None:
                raise ExternalToolError(tool, None, "not found in PATH")
        self.logger.debug(f"{self.collector_name} prêt")

    @abstractmethod
    def collect(self) -> List[Component]:
        """
        Méthode principale de collecte - doit être implémentée par chaque plateforme

        Returns:
            list: Composants normalisés, groupés par phase

        Raises:
            CollectionError: Une phase de collecte a échoué
        """

    def _start_collection(self):
        """Démarre une session de collecte"""
        self.collection_start_time = time.time()
        self.phase_counts = {}
        self.logger.debug(f"Début collecte {self.collector_name}")

    def _end_collection(self) -> float:
        """
        Termine une session de collecte

        Returns:
            float: Durée de collecte en secondes
        """
        if self.collection_start_time:
            duration = time.time() - self.collection_start_time
            self.logger.debug(f"Collecte {self.collector_name} terminée en {duration:.2f}s")
            return duration
        return 0.0

    def _record_phase(self, phase: str, components: List[Component]) -> List[Component]:
        self.phase_counts[phase] = len(components)
        self.logger.info(f"{phase}: {len(components)} composant(s)")
        return components

    def _run_command(self, args: Sequence[str]) -> str:
        """
        Exécute un outil système et retourne sa sortie standard

        Aucune nouvelle tentative n'est faite : un code de sortie non nul
        est immédiatement une erreur fatale.

        Args:
            args: Commande et arguments

        Returns:
            str: Sortie standard décodée (UTF-8, caractères invalides remplacés)

        Raises:
            ExternalToolError: Lancement impossible, délai dépassé ou code non nul
        """
        tool = args[0]
        self.logger.debug(f"Exécution: {' '.join(args)}")

        try:
            result = self.runner(list(args), capture_output=True, timeout=self.command_timeout)
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(tool, None, f"timed out after {e.timeout}s") from e
        except OSError as e:
            raise ExternalToolError(tool, None, str(e)) from e

        if result.returncode != 0:
            raise ExternalToolError(tool, result.returncode, _decode(result.stderr))

        return _decode(result.stdout)

    def get_collection_stats(self) -> Dict[str, Any]:
        """
        Retourne les statistiques de la dernière collecte

        Returns:
            dict: Statistiques du collecteur
        """
        return {
            'collector_name': self.collector_name,
            'collection_duration': self.last_collection_duration,
            'phases': dict(self.phase_counts),
        }


def _decode(output) -> str:
    if output is None:
        return ""
    if isinstance(output, str):
        return output
    return output.decode('utf-8', errors='replace')
