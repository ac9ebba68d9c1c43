"""
Package des collecteurs spécifiques par plateforme

Chaque collecteur interroge les sources natives de son système :
- macOS (system_profiler au format JSON)
- Windows (ver, driverquery, registre, ressources de version)
"""
