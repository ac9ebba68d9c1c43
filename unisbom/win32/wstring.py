"""
Conversion de chaînes larges pour les API Windows

Les API natives "W" attendent des chaînes UTF-16 terminées par un zéro,
et le registre renvoie ses chaînes sous forme de tampons UTF-16. Ce module
fournit :
- L'encodage UTF-8 vers unités UTF-16 (paires de substitution comprises)
- Le décodage tolérant des tampons UTF-16, sans NUL de fin
"""

import ctypes
from typing import List, Sequence, Union

WideInput = Union[bytes, bytearray, memoryview, Sequence[int], "ctypes.Array"]


def _decode_utf8_char(data: bytes, pos: int):
    """
    Décode un point de code UTF-8 à partir de la position donnée

    Args:
        data: Octets UTF-8
        pos: Position de départ

    Returns:
        tuple: (point de code, nouvelle position) ou None en fin de données
    """
    if pos >= len(data):
        return None

    first = data[pos]
    if first < 0x80:
        return first, pos + 1

    if first >= 0xF0:
        width, code_point = 4, first & 0x07
    elif first >= 0xE0:
        width, code_point = 3, first & 0x0F
    else:
        width, code_point = 2, first & 0x1F

    for offset in range(1, width):
        code_point = (code_point << 6) | (data[pos + offset] & 0x3F)

    return code_point, pos + width


def utf16_length(text: str) -> int:
    """Nombre d'unités UTF-16 nécessaires pour représenter le texte"""
    data = text.encode("utf-8", errors="surrogatepass")
    length = 0
    pos = 0
    while True:
        decoded = _decode_utf8_char(data, pos)
        if decoded is None:
            return length
        code_point, pos = decoded
        length += 2 if code_point > 0xFFFF else 1


def to_wide(text: str) -> List[int]:
    """
    Encode un texte en unités UTF-16 terminées par un zéro

    Le tampon est dimensionné à l'avance (longueur UTF-16 + 1) ; une chaîne
    vide donne donc un unique zéro.

    Args:
        text: Texte à encoder

    Returns:
        list: Unités de 16 bits, zéro final inclus
    """
    buffer = [0] * (utf16_length(text) + 1)
    data = text.encode("utf-8", errors="surrogatepass")

    input_pos = 0
    output_pos = 0
    while True:
        decoded = _decode_utf8_char(data, input_pos)
        if decoded is None:
            break
        code_point, input_pos = decoded

        if code_point <= 0xFFFF:
            buffer[output_pos] = code_point
            output_pos += 1
        else:
            code_point -= 0x10000
            buffer[output_pos] = 0xD800 + (code_point >> 10)
            buffer[output_pos + 1] = 0xDC00 + (code_point & 0x3FF)
            output_pos += 2

    return buffer


def to_wide_buffer(text: str) -> "ctypes.Array":
    """Encode un texte dans un tableau ctypes utilisable comme LPCWSTR"""
    units = to_wide(text)
    return (ctypes.c_uint16 * len(units))(*units)


def from_wide(units: WideInput) -> str:
    """
    Décode un tampon UTF-16 en texte

    Les séquences invalides deviennent le caractère de remplacement, et
    tous les NUL de fin (tampons natifs de taille fixe) sont supprimés.

    Args:
        units: Octets little-endian, unités de 16 bits ou tableau ctypes
            (c_uint16 ou c_wchar)

    Returns:
        str: Texte décodé
    """
    # Un tableau c_wchar contient déjà des caractères
    if isinstance(units, ctypes.Array) and getattr(units, "_type_", None) is ctypes.c_wchar:
        return units[:].rstrip("\x00")

    if isinstance(units, (bytes, bytearray, memoryview)):
        raw = bytes(units)
        if len(raw) % 2:
            raw = raw[:-1]
    else:
        raw = b"".join((unit & 0xFFFF).to_bytes(2, "little") for unit in units)

    return raw.decode("utf-16-le", errors="replace").rstrip("\x00")
