"""
Erreurs métier de la conversion liste -> pedido.

Chaque erreur porte un message lisible, renvoyé tel quel à l'appelant.
"""

from __future__ import annotations


class ConversionError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidConversionRequest(ConversionError):
    status_code = 400


class RequirementListNotFound(ConversionError):
    status_code = 404

    def __init__(self, list_id: int):
        super().__init__(f"Requirement list {list_id} not found")
        self.list_id = list_id


class ConversionBlocked(ConversionError):
    status_code = 409

    def __init__(self, reason: str):
        super().__init__(f"List cannot be converted: {reason}")
        self.reason = reason


class NoEligibleItems(ConversionError):
    status_code = 422

    def __init__(self, message: str = "no valid items to convert"):
        super().__init__(message)


class ConversionConflict(ConversionError):
    status_code = 409

    def __init__(self, attempts: int):
        super().__init__(
            f"Concurrent update on requirement items, gave up after {attempts} attempts"
        )
        self.attempts = attempts
