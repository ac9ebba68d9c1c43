"""
Package des collecteurs de l'inventaire logiciel

Ce package contient :
- Le collecteur de base (contrat setup/collect)
- Les règles de repli pour dériver les champs des composants
- Les collecteurs spécifiques par plateforme
"""
