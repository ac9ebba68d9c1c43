"""
Extraction de la ressource de version des binaires Windows

La lecture suit la séquence native imposée par version.dll, chaque étape
consommant le résultat de la précédente :
1. GetFileVersionInfoSizeW : taille du tampon de la ressource
2. GetFileVersionInfoW : chargement de la ressource dans ce tampon
3. VerQueryValueW("\\") : pointeur vers le bloc fixe VS_FIXEDFILEINFO

Ces API échouent parfois avec "fichier introuvable" (code 2) ou 1812/1813
sur des pilotes pourtant présents. L'appelant traite donc l'échec comme
non fatal.
"""

import ctypes
import logging
from typing import Optional, Tuple

from ..core.errors import (
    VersionBlockQueryFailed,
    VersionInfoLoadFailed,
    VersionInfoSizeUnavailable,
)
from .wstring import to_wide_buffer

logger = logging.getLogger(__name__)

# Sous-bloc racine contenant VS_FIXEDFILEINFO
ROOT_BLOCK = "\\"

# Types Win32 (ctypes.wintypes n'est pas importable partout)
DWORD = ctypes.c_uint32
UINT = ctypes.c_uint
BOOL = ctypes.c_int


class VS_FIXEDFILEINFO(ctypes.Structure):
    _fields_ = [
        ("dwSignature", ctypes.c_uint32),
        ("dwStrucVersion", ctypes.c_uint32),
        ("dwFileVersionMS", ctypes.c_uint32),
        ("dwFileVersionLS", ctypes.c_uint32),
        ("dwProductVersionMS", ctypes.c_uint32),
        ("dwProductVersionLS", ctypes.c_uint32),
        ("dwFileFlagsMask", ctypes.c_uint32),
        ("dwFileFlags", ctypes.c_uint32),
        ("dwFileOS", ctypes.c_uint32),
        ("dwFileType", ctypes.c_uint32),
        ("dwFileSubtype", ctypes.c_uint32),
        ("dwFileDateMS", ctypes.c_uint32),
        ("dwFileDateLS", ctypes.c_uint32),
    ]


class Win32VersionApi:
    """
    Accès ctypes à version.dll

    Chaque méthode renvoie un couple (résultat, code d'erreur natif) ;
    le code n'a de sens que si le résultat indique un échec.
    """

    def __init__(self):
        self._dll = ctypes.WinDLL("version", use_last_error=True)

        # Les chaînes larges sont passées comme tableaux c_uint16 (voir wstring)
        self._dll.GetFileVersionInfoSizeW.argtypes = [ctypes.c_void_p, ctypes.POINTER(DWORD)]
        self._dll.GetFileVersionInfoSizeW.restype = DWORD

        self._dll.GetFileVersionInfoW.argtypes = [ctypes.c_void_p, DWORD, DWORD, ctypes.c_void_p]
        self._dll.GetFileVersionInfoW.restype = BOOL

        self._dll.VerQueryValueW.argtypes = [
            ctypes.c_void_p,
            ctypes.c_void_p,
            ctypes.POINTER(ctypes.c_void_p),
            ctypes.POINTER(UINT),
        ]
        self._dll.VerQueryValueW.restype = BOOL

    def get_size(self, path: str) -> Tuple[int, int, int]:
        """
        Interroge la taille de la ressource de version

        Returns:
            tuple: (taille, handle, code d'erreur)
        """
        handle = DWORD(0)
        size = self._dll.GetFileVersionInfoSizeW(to_wide_buffer(path), ctypes.byref(handle))
        return size, handle.value, ctypes.get_last_error() if size == 0 else 0

    def load(self, path: str, handle: int, size: int) -> Tuple[Optional["ctypes.Array"], int]:
        """
        Charge la ressource de version dans un tampon de la taille donnée

        Returns:
            tuple: (tampon ou None, code d'erreur)
        """
        buffer = ctypes.create_string_buffer(size)
        ok = self._dll.GetFileVersionInfoW(to_wide_buffer(path), handle, size, buffer)
        if not ok:
            return None, ctypes.get_last_error()
        return buffer, 0

    def query_root(self, buffer) -> Tuple[Optional[VS_FIXEDFILEINFO], int]:
        """
        Lit le bloc fixe VS_FIXEDFILEINFO dans un tampon chargé

        Returns:
            tuple: (structure ou None, code d'erreur)
        """
        info = ctypes.c_void_p()
        length = UINT(ctypes.sizeof(VS_FIXEDFILEINFO))
        ok = self._dll.VerQueryValueW(
            buffer, to_wide_buffer(ROOT_BLOCK), ctypes.byref(info), ctypes.byref(length)
        )
        if not ok or not info.value:
            return None, ctypes.get_last_error()

        # Copie du bloc : le pointeur ne vit que tant que le tampon existe
        fixed = ctypes.cast(info, ctypes.POINTER(VS_FIXEDFILEINFO)).contents
        return VS_FIXEDFILEINFO.from_buffer_copy(fixed), 0

    def describe(self, code: int) -> str:
        """Message système associé à un code d'erreur Win32"""
        import pywintypes
        import win32api

        try:
            return win32api.FormatMessage(code).strip()
        except pywintypes.error:
            return ""


def format_version(product_version_high: int, product_version_low: int) -> str:
    """
    Formate le quadruplet MAJOR.MINOR.BUILD.REVISION

    Args:
        product_version_high: dwProductVersionMS
        product_version_low: dwProductVersionLS

    Returns:
        str: Version au format "a.b.c.d"
    """
    return "{}.{}.{}.{}".format(
        product_version_high >> 16,
        product_version_high & 0xFFFF,
        product_version_low >> 16,
        product_version_low & 0xFFFF,
    )


def _log_fixed_info(path: str, info) -> None:
    logger.debug(f"VerQueryValueW({path}) -> {{")
    for name, _ in VS_FIXEDFILEINFO._fields_:
        logger.debug(f"  .{name} = {getattr(info, name, None)}")
    logger.debug("}")


def get_file_version(path: str, api=None) -> str:
    """
    Retourne la version produit embarquée dans un binaire

    Args:
        path: Chemin du fichier exécutable ou du pilote
        api: Implémentation de l'accès natif (Win32VersionApi par défaut)

    Returns:
        str: Version "a.b.c.d"

    Raises:
        VersionInfoSizeUnavailable: La taille de la ressource est nulle
        VersionInfoLoadFailed: La ressource n'a pas pu être chargée
        VersionBlockQueryFailed: Le bloc fixe est introuvable
    """
    if api is None:
        api = Win32VersionApi()

    size, handle, error = api.get_size(path)
    if size == 0:
        raise VersionInfoSizeUnavailable(path, error, api.describe(error))

    logger.debug(f"GetFileVersionInfoSizeW({path}) -> {size}")

    buffer, error = api.load(path, handle, size)
    if buffer is None:
        raise VersionInfoLoadFailed(path, error, api.describe(error))

    info, error = api.query_root(buffer)
    if info is None:
        raise VersionBlockQueryFailed(path, error, api.describe(error))

    _log_fixed_info(path, info)

    return format_version(info.dwProductVersionMS, info.dwProductVersionLS)
