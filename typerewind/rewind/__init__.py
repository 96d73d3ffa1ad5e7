"""Undo history and buffer surgery."""

from .ledger import KeystrokeLedger
from .controller import RewindController

__all__ = [
    'KeystrokeLedger',
    'RewindController'
]
