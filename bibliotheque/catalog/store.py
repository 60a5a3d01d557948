"""
File-backed data store for the book catalogue.

A ``Bibliotheque`` owns an ordered list of ``Livre`` records and the
JSON file they are persisted to. The file is loaded once, when the
store is constructed, and rewritten in full after every mutation
(``add_book`` and ``remove_at``). Callers never touch the file
directly.

The file holds a JSON array of objects with the keys ``titre``,
``auteur``, ``isbn`` and ``annee_publication``, pretty-printed with a
two-space indent. An empty catalogue is written as ``[]``.
"""

from __future__ import annotations

import enum
import json
import logging
import os
import stat
import tempfile
import threading
from pathlib import Path
from typing import List, NamedTuple, Optional, Union

from pydantic import TypeAdapter, ValidationError

from .schemas import Livre


logger = logging.getLogger(__name__)

# Name of the catalogue file used by both front ends
DEFAULT_FILE = "bibliotheque.json"

_LIVRES_ADAPTER = TypeAdapter(List[Livre])


class BibliothequeError(Exception):
    """Base class for every failure reported by the store."""


class CatalogueCorrompuError(BibliothequeError):
    """The catalogue file exists but does not hold a valid list of books."""


class LectureError(BibliothequeError):
    """The catalogue file exists but could not be read."""


class EcritureError(BibliothequeError):
    """The catalogue could not be written to disk."""


class IndexInvalideError(BibliothequeError, IndexError):
    """A removal was requested for a position outside the catalogue."""

    def __init__(self, index: int, length: int) -> None:
        super().__init__("Index invalide")
        self.index = index
        self.length = length


class StatutChargement(enum.Enum):
    ABSENT = "absent"
    VIDE = "vide"
    CHARGE = "charge"


class ResultatChargement(NamedTuple):
    statut: StatutChargement
    livres: List[Livre]


def load_catalogue(fichier: Union[str, Path]) -> ResultatChargement:
    """Read the catalogue stored in ``fichier``.

    Parameters
    ----------
    fichier : Union[str, Path]
        Path of the JSON catalogue file.

    Returns
    -------
    ResultatChargement
        ``ABSENT`` with no books when the file does not exist, ``VIDE``
        when it has zero length, ``CHARGE`` with the parsed books
        otherwise.

    Raises
    ------
    CatalogueCorrompuError
        If the content is not a JSON array of valid book records.
        Whitespace-only content counts as malformed.
    LectureError
        If the file exists but cannot be read.
    """
    path = Path(fichier)
    if not path.exists():
        return ResultatChargement(StatutChargement.ABSENT, [])

    try:
        with path.open("r", encoding="utf-8") as f:
            contenu = f.read()
    except UnicodeDecodeError as exc:
        raise CatalogueCorrompuError(f"{path}: encodage invalide ({exc})") from exc
    except OSError as exc:
        raise LectureError(f"Impossible de lire {path}: {exc}") from exc

    if not contenu:
        return ResultatChargement(StatutChargement.VIDE, [])

    try:
        raw = json.loads(contenu)
    except json.JSONDecodeError as exc:
        raise CatalogueCorrompuError(f"{path}: JSON invalide ({exc})") from exc

    try:
        livres = _LIVRES_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        raise CatalogueCorrompuError(
            f"{path}: contenu inattendu ({exc.error_count()} erreur(s))"
        ) from exc
    return ResultatChargement(StatutChargement.CHARGE, livres)


def _file_mode(path: Path) -> int:
    """Permission bits for a rewrite of ``path``: kept if it exists, else from the umask."""
    if path.exists():
        return stat.S_IMODE(path.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def save_catalogue(livres: List[Livre], fichier: Union[str, Path]) -> None:
    """Write ``livres`` to ``fichier``, replacing it atomically.

    The JSON is written to a temporary file in the same directory and
    then renamed over the target, so an interrupted write leaves the
    previous catalogue untouched. The permissions of an existing file
    are kept.

    Raises
    ------
    EcritureError
        If the directory cannot be created, the temporary file cannot be
        written or the rename fails. The temporary file is removed.
    """
    path = Path(fichier)
    contenu = json.dumps(
        [livre.to_record() for livre in livres], ensure_ascii=False, indent=2
    )
    tmp_name: Optional[str] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_name = f.name
            f.write(contenu)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, _file_mode(path))
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as exc:
        raise EcritureError(f"Impossible d'écrire {path}: {exc}") from exc
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                logger.warning("Temporary file %s could not be removed", tmp_name)


class Bibliotheque:
    """In-memory book catalogue bound to a JSON file.

    Every mutation is followed by a full rewrite of the file. When the
    rewrite fails the in-memory change is undone before the
    ``EcritureError`` reaches the caller, so the catalogue seen by the
    caller always matches what was last persisted.

    Mutations are serialised with a lock (the web front end calls the
    store from a thread pool). The store does not coordinate with other
    processes and does not notice changes made to the file behind its
    back.
    """

    def __init__(self, fichier: Union[str, Path] = DEFAULT_FILE, strict: bool = False) -> None:
        self.fichier = Path(fichier)
        self._livres: List[Livre] = []
        self._lock = threading.Lock()
        try:
            resultat = load_catalogue(self.fichier)
        except CatalogueCorrompuError:
            if strict:
                raise
            # Never block startup on a bad data file
            logger.warning(
                "Catalogue %s is unreadable, starting with an empty library",
                self.fichier,
                exc_info=True,
            )
            return
        self._livres = resultat.livres
        if resultat.statut is StatutChargement.CHARGE:
            logger.info("Loaded %d book(s) from %s", len(self._livres), self.fichier)
        else:
            logger.info("New library (%s is %s)", self.fichier, resultat.statut.value)

    def __len__(self) -> int:
        return len(self._livres)

    def save(self) -> None:
        """Flush the whole catalogue to disk."""
        try:
            save_catalogue(self._livres, self.fichier)
        except EcritureError:
            logger.exception("Saving %s failed", self.fichier)
            raise
        logger.info("Saved %d book(s) to %s", len(self._livres), self.fichier)

    def add_book(self, livre: Livre) -> None:
        """Append ``livre`` and save.

        Raises
        ------
        EcritureError
            If the save fails; the book is not kept in memory.
        """
        with self._lock:
            self._livres.append(livre)
            try:
                self.save()
            except EcritureError:
                self._livres.pop()
                raise

    def search_by_title(self, titre: str) -> List[Livre]:
        """Books whose title contains ``titre``, ignoring case, in catalogue order."""
        needle = titre.lower()
        return [livre for livre in self._livres if needle in livre.title.lower()]

    def search_by_isbn(self, isbn: str) -> Optional[Livre]:
        """The first book whose ISBN equals ``isbn`` ignoring case, or ``None``."""
        needle = isbn.lower()
        return next((livre for livre in self._livres if livre.isbn.lower() == needle), None)

    def remove_at(self, index: int) -> Livre:
        """Remove the book at zero-based ``index`` and save.

        Returns
        -------
        Livre
            The removed book.

        Raises
        ------
        IndexInvalideError
            If ``index`` is outside ``[0, len)``; nothing changes.
        EcritureError
            If the save fails; the book is put back at its position.
        """
        with self._lock:
            if index < 0 or index >= len(self._livres):
                raise IndexInvalideError(index, len(self._livres))
            livre = self._livres.pop(index)
            try:
                self.save()
            except EcritureError:
                self._livres.insert(index, livre)
                raise
            return livre

    def list_books(self) -> List[Livre]:
        """A copy of the catalogue in its current order."""
        return list(self._livres)
