"""
Console front end.

``run_menu`` loops over a numbered menu until the user quits or the
input ends. Reading and printing go through ``input_fn`` and
``output_fn`` so the loop can be driven from tests.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from pydantic import ValidationError

from .catalog.schemas import Livre
from .catalog.session import Onglet, TypeMessage, VueEtat
from .catalog.store import Bibliotheque, BibliothequeError


logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]
OutputFn = Callable[[str], None]

MENU = """
=== Gestion de Bibliothèque ===
1. Ajouter un livre
2. Rechercher par titre
3. Rechercher par ISBN
4. Lister les livres
5. Supprimer un livre
6. Quitter"""


def format_livre(livre: Livre) -> str:
    return (
        f"{livre.title}\n"
        f"  Auteur: {livre.author}\n"
        f"  ISBN: {livre.isbn}\n"
        f"  Année: {livre.publication_year}"
    )


def _print_livres(livres: List[Livre], output_fn: OutputFn, numbered: bool = False) -> None:
    for i, livre in enumerate(livres, start=1):
        texte = format_livre(livre)
        output_fn(f"{i}. {texte}" if numbered else texte)


def _ajouter(bib: Bibliotheque, etat: VueEtat, input_fn: InputFn) -> None:
    titre = input_fn("Titre: ").strip()
    auteur = input_fn("Auteur: ").strip()
    isbn = input_fn("ISBN: ").strip()
    annee_txt = input_fn("Année de publication: ").strip()
    try:
        livre = Livre(
            title=titre,
            author=auteur,
            isbn=isbn,
            publication_year=int(annee_txt),
        )
    except (ValueError, ValidationError):
        etat.erreur("Erreur: année de publication invalide.")
        return
    try:
        bib.add_book(livre)
    except BibliothequeError as e:
        etat.erreur(f"Erreur: {e}")
        return
    etat.succes("Livre ajouté avec succès.")


def _rechercher_titre(bib: Bibliotheque, etat: VueEtat, input_fn: InputFn, output_fn: OutputFn) -> None:
    resultats = bib.search_by_title(input_fn("Titre recherché: ").strip())
    if not resultats:
        etat.info("Aucun résultat trouvé.")
        return
    _print_livres(resultats, output_fn)
    etat.info(f"{len(resultats)} livre(s) trouvé(s).")


def _rechercher_isbn(bib: Bibliotheque, etat: VueEtat, input_fn: InputFn, output_fn: OutputFn) -> None:
    livre = bib.search_by_isbn(input_fn("ISBN recherché: ").strip())
    if livre is None:
        etat.info("Aucun livre trouvé avec cet ISBN.")
        return
    output_fn(format_livre(livre))


def _lister(bib: Bibliotheque, etat: VueEtat, output_fn: OutputFn) -> None:
    livres = bib.list_books()
    if not livres:
        etat.info("Aucun livre dans la bibliothèque.")
        return
    _print_livres(livres, output_fn, numbered=True)


def _supprimer(bib: Bibliotheque, etat: VueEtat, input_fn: InputFn, output_fn: OutputFn) -> None:
    _lister(bib, etat, output_fn)
    if len(bib) == 0:
        return
    numero = input_fn("Numéro du livre à supprimer: ").strip()
    try:
        etat.demander_suppression(int(numero) - 1)
    except ValueError:
        etat.erreur("Erreur: numéro invalide.")
        return
    etat.appliquer_suppression(bib)


def run_menu(
    bib: Bibliotheque,
    input_fn: Optional[InputFn] = None,
    output_fn: Optional[OutputFn] = None,
) -> None:
    """Run the console menu until "Quitter" is chosen or input ends."""
    input_fn = input_fn or input
    output_fn = output_fn or print
    etat = VueEtat()
    while True:
        output_fn(MENU)
        try:
            choix = input_fn("Votre choix: ").strip()
            if choix == "1":
                etat.onglet_actif = Onglet.AJOUT
                _ajouter(bib, etat, input_fn)
            elif choix == "2":
                etat.onglet_actif = Onglet.RECHERCHE
                _rechercher_titre(bib, etat, input_fn, output_fn)
            elif choix == "3":
                etat.onglet_actif = Onglet.RECHERCHE
                _rechercher_isbn(bib, etat, input_fn, output_fn)
            elif choix == "4":
                etat.onglet_actif = Onglet.LISTE
                _lister(bib, etat, output_fn)
            elif choix == "5":
                etat.onglet_actif = Onglet.LISTE
                _supprimer(bib, etat, input_fn, output_fn)
            elif choix == "6":
                output_fn("Au revoir !")
                return
            else:
                etat.erreur("Choix invalide.")
        except EOFError:
            logger.debug("End of input, leaving the menu")
            return

        if etat.message:
            prefix = "[!] " if etat.type_message is TypeMessage.ERREUR else ""
            output_fn(f"{prefix}{etat.message}")
            etat.info("")
