"""
unisbom - Inventaire logiciel multi-plateforme

Ce package construit une nomenclature logicielle (SBOM) de la machine
courante à partir des sources natives du système (system_profiler sur
macOS ; ver, driverquery, registre et ressources de version sous Windows)
et normalise les enregistrements en un modèle de composant unique.
"""

__version__ = "0.1.0"

# Imports principaux pour faciliter l'utilisation
from .core.component import Component, Kind
from .core.collector import InventoryCollector, get_collector
from .core.config import InventoryConfig
from .core.logger import InventoryLogger

__all__ = ['Component', 'Kind', 'InventoryCollector', 'get_collector', 'InventoryConfig', 'InventoryLogger']
