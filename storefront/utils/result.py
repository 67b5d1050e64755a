"""
Résultat typé pour les écritures « best-effort » (brouillon de commande, commentaires, soumissions).
L'appelant décide: journaliser et continuer, ou échouer.
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PersistResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "PersistResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "PersistResult[T]":
        return cls(error=error or "unknown error")
