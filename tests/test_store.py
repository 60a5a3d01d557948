"""
Unit tests for catalog/store.py

Covers loading (missing, empty, malformed files), the JSON file format,
searches, index-based removal and the rollback of mutations whose save
fails.
"""
import json
import os
import stat

import pytest
from pydantic import ValidationError

from bibliotheque.catalog import store as store_module
from bibliotheque.catalog.schemas import Livre
from bibliotheque.catalog.store import (
    Bibliotheque,
    CatalogueCorrompuError,
    EcritureError,
    IndexInvalideError,
    LectureError,
    StatutChargement,
    load_catalogue,
)

DUNE = Livre(title="Dune", author="Frank Herbert", isbn="0441013597", publication_year=1965)
ORWELL = Livre(title="1984", author="George Orwell", isbn="0451524935", publication_year=1949)


@pytest.fixture
def fichier(tmp_path):
    return tmp_path / "bibliotheque.json"


@pytest.fixture
def bib(fichier):
    b = Bibliotheque(fichier)
    b.add_book(DUNE)
    b.add_book(ORWELL)
    return b


def _fail_replace(*args, **kwargs):
    raise OSError("disque plein")


def test_missing_file_starts_empty_without_creating_it(fichier):
    b = Bibliotheque(fichier)
    assert b.list_books() == []
    assert not fichier.exists()

    b.add_book(DUNE)
    assert fichier.exists()


def test_load_statuses(fichier):
    assert load_catalogue(fichier).statut is StatutChargement.ABSENT

    fichier.write_text("", encoding="utf-8")
    resultat = load_catalogue(fichier)
    assert resultat.statut is StatutChargement.VIDE
    assert resultat.livres == []

    fichier.write_text("[]", encoding="utf-8")
    assert load_catalogue(fichier).statut is StatutChargement.CHARGE


@pytest.mark.parametrize(
    "contenu",
    [
        "pas du json",
        "   \n",
        '{"titre": "Dune"}',
        '[{"titre": "Dune", "auteur": "Frank Herbert", "isbn": "1"}]',
        '[{"titre": "Dune", "auteur": "Frank Herbert", "isbn": "1", "annee_publication": -3}]',
        '[{"titre": 12, "auteur": "Frank Herbert", "isbn": "1", "annee_publication": 1965}]',
        '[{"titre": "Dune", "auteur": "Frank Herbert", "isbn": "1", "annee_publication": "1965"}]',
        '[{"titre": "Dune", "auteur": "Frank Herbert", "isbn": "1", "annee_publication": 1965.0}]',
        '[{"titre": "Dune", "auteur": "Frank Herbert", "isbn": "1", "annee_publication": true}]',
        '[{"titre": "Dune", "auteur": "Frank Herbert", "isbn": "1", "annee_publication": 100000000000000000000}]',
    ],
)
def test_malformed_file(fichier, contenu):
    fichier.write_text(contenu, encoding="utf-8")
    with pytest.raises(CatalogueCorrompuError):
        load_catalogue(fichier)

    # The default construction policy swallows the failure
    assert Bibliotheque(fichier).list_books() == []

    with pytest.raises(CatalogueCorrompuError):
        Bibliotheque(fichier, strict=True)


def test_file_format(bib, fichier):
    contenu = fichier.read_text(encoding="utf-8")
    data = json.loads(contenu)
    assert data[0] == {
        "titre": "Dune",
        "auteur": "Frank Herbert",
        "isbn": "0441013597",
        "annee_publication": 1965,
    }
    assert list(data[1].keys()) == ["titre", "auteur", "isbn", "annee_publication"]
    # pretty-printed
    assert contenu.startswith("[\n  {\n")


def test_empty_catalogue_is_written_as_empty_array(fichier):
    b = Bibliotheque(fichier)
    b.add_book(DUNE)
    b.remove_at(0)
    assert fichier.read_text(encoding="utf-8") == "[]"


def test_non_ascii_is_kept(fichier):
    b = Bibliotheque(fichier)
    b.add_book(Livre(titre="Les Misérables", auteur="Victor Hugo", isbn="x", annee_publication=1862))
    assert "Misérables" in fichier.read_text(encoding="utf-8")


def test_round_trip(bib, fichier):
    bib.add_book(DUNE)
    reloaded = Bibliotheque(fichier)
    assert reloaded.list_books() == bib.list_books()
    assert len(reloaded) == 3


def test_search_by_title(bib):
    assert bib.search_by_title("") == [DUNE, ORWELL]
    assert bib.search_by_title("dune") == [DUNE]
    assert bib.search_by_title("DUNE") == [DUNE]
    assert bib.search_by_title("19") == [ORWELL]
    assert bib.search_by_title("zzz") == []


def test_search_by_isbn_is_exact_and_case_insensitive(fichier):
    b = Bibliotheque(fichier)
    livre = Livre(title="T", author="A", isbn="ABC-123", publication_year=2000)
    b.add_book(livre)
    assert b.search_by_isbn("abc-123") == livre
    assert b.search_by_isbn("ABC-12") is None
    assert b.search_by_isbn("") is None


def test_remove_at_shifts_following_books(fichier):
    b = Bibliotheque(fichier)
    livres = [
        Livre(title=f"Livre {i}", author="A", isbn=str(i), publication_year=2000 + i)
        for i in range(4)
    ]
    for livre in livres:
        b.add_book(livre)

    removed = b.remove_at(1)

    assert removed == livres[1]
    assert b.list_books() == [livres[0], livres[2], livres[3]]
    assert Bibliotheque(fichier).list_books() == b.list_books()


@pytest.mark.parametrize("index", [2, 5, -1])
def test_remove_at_invalid_index(bib, fichier, index):
    before = fichier.read_text(encoding="utf-8")
    with pytest.raises(IndexInvalideError, match="Index invalide"):
        bib.remove_at(index)
    assert bib.list_books() == [DUNE, ORWELL]
    assert fichier.read_text(encoding="utf-8") == before


def test_remove_at_on_empty_catalogue(fichier):
    b = Bibliotheque(fichier)
    with pytest.raises(IndexInvalideError):
        b.remove_at(0)
    assert not fichier.exists()


def test_add_rolls_back_when_save_fails(bib, fichier, monkeypatch):
    before = fichier.read_text(encoding="utf-8")
    monkeypatch.setattr(store_module.os, "replace", _fail_replace)

    with pytest.raises(EcritureError):
        bib.add_book(Livre(title="Perdu", author="A", isbn="0", publication_year=1))

    assert bib.list_books() == [DUNE, ORWELL]
    assert fichier.read_text(encoding="utf-8") == before
    # no temporary file left behind
    assert os.listdir(fichier.parent) == [fichier.name]


def test_remove_rolls_back_when_save_fails(bib, monkeypatch):
    monkeypatch.setattr(store_module.os, "replace", _fail_replace)
    with pytest.raises(EcritureError):
        bib.remove_at(0)
    assert bib.list_books() == [DUNE, ORWELL]


def test_list_books_returns_a_copy(bib):
    livres = bib.list_books()
    livres.clear()
    assert len(bib) == 2


def test_scenario(fichier):
    b = Bibliotheque(fichier)
    b.add_book(Livre(titre="Dune", auteur="Frank Herbert", isbn="0441013597", annee_publication=1965))
    b.add_book(Livre(titre="1984", auteur="George Orwell", isbn="0451524935", annee_publication=1949))

    assert [l.title for l in b.search_by_title("19")] == ["1984"]
    assert b.search_by_isbn("0441013597").title == "Dune"

    b.remove_at(0)
    assert [l.title for l in b.list_books()] == ["1984"]


def test_unreadable_file(tmp_path):
    # a directory where the catalogue file should be
    dossier = tmp_path / "bibliotheque.json"
    dossier.mkdir()
    with pytest.raises(LectureError, match="Impossible de lire"):
        load_catalogue(dossier)
    with pytest.raises(LectureError):
        Bibliotheque(dossier)


def test_books_cannot_be_changed_outside_the_store(bib, fichier):
    with pytest.raises(ValidationError):
        bib.list_books()[0].title = "Changed"
    with pytest.raises(ValidationError):
        bib.search_by_isbn("0441013597").publication_year = -5

    assert bib.list_books() == Bibliotheque(fichier).list_books()


def test_year_upper_bound():
    assert Livre(title="T", author="A", isbn="1", publication_year=2**32 - 1).publication_year == 2**32 - 1
    with pytest.raises(ValidationError):
        Livre(title="T", author="A", isbn="1", publication_year=2**32)


def test_save_keeps_file_permissions(bib, fichier):
    fichier.chmod(0o644)
    bib.add_book(DUNE)
    assert stat.S_IMODE(fichier.stat().st_mode) == 0o644

    fichier.chmod(0o640)
    bib.remove_at(0)
    assert stat.S_IMODE(fichier.stat().st_mode) == 0o640


def test_new_file_follows_umask(fichier):
    umask = os.umask(0o022)
    try:
        Bibliotheque(fichier).add_book(DUNE)
    finally:
        os.umask(umask)
    assert stat.S_IMODE(fichier.stat().st_mode) == 0o644
