"""
View state shared by the front ends.

``VueEtat`` holds what a front end needs between two renderings: the
active tab, the message banner and a pending delete. A delete is
requested while the list is being displayed and only applied once the
display is finished, so the list is never modified while it is being
walked.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional

from pydantic import BaseModel

from .store import Bibliotheque, BibliothequeError


logger = logging.getLogger(__name__)


class Onglet(str, enum.Enum):
    LISTE = "liste"
    AJOUT = "ajout"
    RECHERCHE = "recherche"


class TypeMessage(str, enum.Enum):
    INFO = "info"
    ERREUR = "erreur"
    SUCCES = "succes"


class VueEtat(BaseModel):
    onglet_actif: Onglet = Onglet.LISTE
    message: str = ""
    type_message: TypeMessage = TypeMessage.INFO
    suppression_en_attente: Optional[int] = None

    def info(self, message: str) -> None:
        self.message = message
        self.type_message = TypeMessage.INFO

    def succes(self, message: str) -> None:
        self.message = message
        self.type_message = TypeMessage.SUCCES

    def erreur(self, message: str) -> None:
        self.message = message
        self.type_message = TypeMessage.ERREUR

    def demander_suppression(self, index: int) -> None:
        """Remember ``index`` (zero-based) for the next ``appliquer_suppression``."""
        self.suppression_en_attente = index

    def appliquer_suppression(self, bibliotheque: Bibliotheque) -> bool:
        """Apply the pending delete, if any, and update the banner.

        The pending index is cleared whether the removal succeeds or
        not. Returns ``True`` when a book was removed.
        """
        index = self.suppression_en_attente
        if index is None:
            return False
        self.suppression_en_attente = None
        try:
            bibliotheque.remove_at(index)
        except BibliothequeError as e:
            logger.info("Delete of index %d refused: %s", index, e)
            self.erreur(f"Erreur: {e}")
            return False
        self.succes("Livre supprimé avec succès.")
        return True
