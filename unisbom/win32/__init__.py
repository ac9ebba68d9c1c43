"""
Accès natif Windows pour l'inventaire

Ce package regroupe le code qui dialogue avec les structures natives :
- Conversion des chaînes larges UTF-16
- Ressources de version des binaires (version.dll)
- Clés de désinstallation du registre
"""
