"""
Écriture de l'inventaire

Ce module rend la liste de composants dans l'un des formats supportés et
l'écrit vers la destination configurée :
- text : une ligne de résumé par composant
- json : dump complet de chaque composant
"""

import sys
import json
from typing import List, Optional, TextIO

from .component import Component
from .errors import OutputError

STDOUT = 'stdout'


def to_text(components: List[Component]) -> str:
    """
    Rend un résumé texte, une ligne par composant

    Args:
        components: Composants à rendre

    Returns:
        str: Lignes "<date> [Type] name=... version=... path=..."
    """
    lines = []
    for component in components:
        modified = component.modified.strftime('%Y-%m-%d %H:%M:%S UTC')
        lines.append(
            f"<{modified}> [{component.kind}] name={component.name} "
            f"version={component.version} path={component.path}\n"
        )
    return ''.join(lines)


def to_json(components: List[Component]) -> str:
    """
    Rend la liste complète des composants en JSON

    Raises:
        OutputError: Sérialisation impossible
    """
    try:
        return json.dumps([component.to_dict() for component in components], indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise OutputError(f"can't serialize to json: {e}") from e


RENDERERS = {
    'text': to_text,
    'json': to_json,
}


def render(components: List[Component], output_format: str) -> str:
    """
    Rend les composants dans le format demandé

    Raises:
        OutputError: Format inconnu
    """
    renderer = RENDERERS.get(output_format)
    if renderer is None:
        raise OutputError(f"unknown output format: {output_format}")
    return renderer(components)


def write_components(components: List[Component], output_format: str = 'text',
                     destination: str = STDOUT, stream: Optional[TextIO] = None) -> None:
    """
    Rend puis écrit les composants vers la destination

    Le rendu est complet avant toute écriture : une erreur de rendu ne
    laisse pas de fichier partiel.

    Args:
        components: Composants à écrire
        output_format: 'text' ou 'json'
        destination: 'stdout' ou chemin de fichier
        stream: Flux utilisé pour 'stdout' (sys.stdout par défaut)

    Raises:
        OutputError: Rendu ou écriture impossible
    """
    content = render(components, output_format)

    if destination == STDOUT:
        target = stream or sys.stdout
        try:
            target.write(content)
            target.flush()
        except OSError as e:
            raise OutputError(f"can't write {output_format} to output: {e}") from e
        return

    try:
        with open(destination, 'w', encoding='utf-8') as f:
            f.write(content)
    except OSError as e:
        raise OutputError(f"can't write {output_format} to {destination}: {e}") from e
