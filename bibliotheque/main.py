# bibliotheque/main.py
from fastapi import FastAPI

from . import __version__
from .catalog import catalog_router


app = FastAPI(
    title="Gestion de Bibliothèque",
    description=(
        "Catalogue de livres (titre, auteur, ISBN, année de publication) "
        "enregistré dans un fichier JSON après chaque modification."
    ),
    version=__version__,
)

app.include_router(catalog_router)


# Vérification que le service répond
@app.get("/")
def health_check():
    return {"status": "ok"}
