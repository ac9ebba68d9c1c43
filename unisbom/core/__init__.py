"""
Modules principaux de l'inventaire

Configuration, journalisation, modèle de composant, erreurs,
sélection du collecteur et écriture de la sortie.
"""
