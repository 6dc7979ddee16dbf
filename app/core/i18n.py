"""
Translated messages for client-facing errors.

Key format: {namespace}_{category}_{specificKey}
Every locale must define every key; get_message() falls back to English for
unknown locales.
"""

from typing import Literal

MessageKey = Literal[
    "global_fallback",
    "global_exception_fallback",
    "global_exception_badRequest",
    "global_exception_unauthorized",
    "global_exception_forbidden",
    "global_exception_notFound",
    "global_exception_conflict",
    "global_exception_tooManyRequests",
    "global_exception_internalServerError",
    "global_exception_serviceUnavailable",
    "auth_exception_adminRequired",
    "auth_exception_banned",
]

DEFAULT_LOCALE = "en"

EN: dict[MessageKey, str] = {
    "global_fallback": "Operation successful.",
    "global_exception_fallback": "An unexpected error occurred. Please try again later.",
    "global_exception_badRequest": "Something's missing or incorrect. Please check and try again.",
    "global_exception_unauthorized": "You need to sign in to access this.",
    "global_exception_forbidden": "You don't have permission to do this.",
    "global_exception_notFound": "We couldn't find what you were looking for.",
    "global_exception_conflict": "There's a conflict with something. Please try again.",
    "global_exception_tooManyRequests": "Too many requests. Please try again later.",
    "global_exception_internalServerError": "Something went wrong on our end. We're looking into it.",
    "global_exception_serviceUnavailable": "Service is currently unavailable. Please try again later.",
    "auth_exception_adminRequired": "Access denied: Admin access required.",
    "auth_exception_banned": "This account has been suspended.",
}

ES: dict[MessageKey, str] = {
    "global_fallback": "Operación exitosa.",
    "global_exception_fallback": "Ocurrió un error inesperado. Inténtalo de nuevo más tarde.",
    "global_exception_badRequest": "Algo falta o es incorrecto. Por favor revisa e intenta de nuevo.",
    "global_exception_unauthorized": "Necesitas iniciar sesión para acceder a esto.",
    "global_exception_forbidden": "No tienes permiso para hacer esto.",
    "global_exception_notFound": "No pudimos encontrar lo que buscabas.",
    "global_exception_conflict": "Hay un conflicto. Por favor intenta de nuevo.",
    "global_exception_tooManyRequests": "Demasiadas solicitudes. Intenta de nuevo más tarde.",
    "global_exception_internalServerError": "Algo salió mal de nuestro lado. Lo estamos investigando.",
    "global_exception_serviceUnavailable": "El servicio no está disponible. Intenta de nuevo más tarde.",
    "auth_exception_adminRequired": "Acceso denegado: se requiere acceso de administrador.",
    "auth_exception_banned": "Esta cuenta ha sido suspendida.",
}

LOCALES: dict[str, dict[MessageKey, str]] = {
    "en": EN,
    "es": ES,
}


def get_message(key: MessageKey, locale: str) -> str:
    """
    Get translated message for a key.

    Args:
        key: Message key
        locale: Locale code ("en", "es"); region suffixes like "es-MX" are ignored

    Returns:
        Translated message, in English if the locale is not available
    """
    messages = LOCALES.get(locale) or LOCALES.get(locale.split("-")[0]) or LOCALES[DEFAULT_LOCALE]
    return messages[key]
