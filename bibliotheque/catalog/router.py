"""
Route definitions for the library web front end.

Endpoints under /api/bibliotheque:
- GET    /livres              : list books, or search by title with ?titre=
- GET    /livres/isbn/{isbn}  : get one book by ISBN (case-insensitive)
- POST   /livres              : add a book
- DELETE /livres/{index}      : remove the book at a zero-based position
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status

from .schemas import Livre
from .store import (
    DEFAULT_FILE,
    Bibliotheque,
    BibliothequeError,
    EcritureError,
    IndexInvalideError,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bibliotheque", tags=["bibliotheque"])

# ---------------------------------------------------------------------------
# Store management
#
# One store per process, created on first use from ``_fichier``. The
# entry point calls ``configure()`` before serving to point it at the
# file given on the command line.

_fichier: Path = Path(DEFAULT_FILE)
_bibliotheque: Optional[Bibliotheque] = None
_store_lock = threading.Lock()


def configure(fichier: Union[str, Path]) -> None:
    """Bind the web front end to ``fichier``; the store is reloaded on next use."""
    global _fichier, _bibliotheque
    with _store_lock:
        _fichier = Path(fichier)
        _bibliotheque = None


def get_bibliotheque() -> Bibliotheque:
    global _bibliotheque
    with _store_lock:
        if _bibliotheque is None:
            try:
                _bibliotheque = Bibliotheque(_fichier)
            except BibliothequeError as e:
                logger.error("Cannot open catalogue %s: %s", _fichier, e)
                raise HTTPException(status_code=500, detail=f"Erreur: {e}")
        return _bibliotheque


@router.get("/livres", response_model=List[Livre], response_model_by_alias=True)
def list_livres(
    titre: Optional[str] = Query(default=None, description="Rechercher par titre"),
    bibliotheque: Bibliotheque = Depends(get_bibliotheque),
) -> List[Livre]:
    """
    Returns every book in catalogue order, or only those whose title
    contains ``titre`` (case-insensitive) when it is given.
    """
    if titre is None:
        return bibliotheque.list_books()
    return bibliotheque.search_by_title(titre)


@router.get("/livres/isbn/{isbn}", response_model=Livre, response_model_by_alias=True)
def get_livre_par_isbn(
    isbn: str, bibliotheque: Bibliotheque = Depends(get_bibliotheque)
) -> Livre:
    livre = bibliotheque.search_by_isbn(isbn)
    if livre is None:
        raise HTTPException(status_code=404, detail="Aucun livre trouvé avec cet ISBN.")
    return livre


@router.post(
    "/livres",
    response_model=Livre,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
def add_livre(livre: Livre, bibliotheque: Bibliotheque = Depends(get_bibliotheque)) -> Livre:
    """Add a book. The body uses the file's keys (``titre``, ``auteur``...)."""
    try:
        bibliotheque.add_book(livre)
    except EcritureError as e:
        raise HTTPException(status_code=500, detail=f"Erreur: {e}")
    return livre


@router.delete("/livres/{index}", response_model=Livre, response_model_by_alias=True)
def remove_livre(index: int, bibliotheque: Bibliotheque = Depends(get_bibliotheque)) -> Livre:
    """Remove the book at zero-based ``index`` and return it."""
    try:
        return bibliotheque.remove_at(index)
    except IndexInvalideError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except EcritureError as e:
        raise HTTPException(status_code=500, detail=f"Erreur: {e}")
