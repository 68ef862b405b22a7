"""Fixed catalog categories and the static catalog used when generation fails."""

from __future__ import annotations

from dataclasses import dataclass

from .models import Category, Movie


@dataclass(frozen=True)
class CategoryDefinition:
    """Describes one of the fixed rows shown in the browse view."""

    title: str
    generate_items: bool = True


CATALOG_CATEGORIES: tuple[CategoryDefinition, ...] = (
    CategoryDefinition(title="Conferenze"),
    CategoryDefinition(title="Pillole di storia"),
    CategoryDefinition(title="Scavi archeologici"),
    CategoryDefinition(title="Altri video", generate_items=False),
)

CATEGORY_TITLES: tuple[str, ...] = tuple(
    definition.title for definition in CATALOG_CATEGORIES
)

MY_LIST_TITLE = "La mia lista"


def _movie(
    movie_id: str,
    title: str,
    description: str,
    match_score: int,
    year: int,
    duration: str,
    genre: str,
) -> Movie:
    return Movie(
        id=movie_id,
        title=title,
        description=description,
        match_score=match_score,
        year=year,
        duration=duration,
        genre=genre,
    )


FALLBACK_CATALOG: tuple[Category, ...] = (
    Category(
        title="Conferenze",
        movies=[
            _movie("c1", "Il Futuro dell'Archeologia", "Un dibattito sulle nuove tecnologie applicate agli scavi.", 98, 2024, "1h 15m", "Conferenza"),
            _movie("c2", "Storia Romana: Nuove Scoperte", "Esperti discutono i recenti ritrovamenti a Pompei.", 95, 2023, "1h 45m", "Conferenza"),
            _movie("c3", "L'Egitto Segreto", "Conferenza internazionale sugli enigmi della Valle dei Re.", 88, 2022, "2h 05m", "Conferenza"),
            _movie("c4", "Medioevo Digitale", "Come l'AI sta ricostruendo i manoscritti perduti.", 92, 2024, "55m", "Conferenza"),
        ],
    ),
    Category(
        title="Pillole di storia",
        movies=[
            _movie("p1", "L'invenzione della ruota", "5 minuti per capire come è cambiato il mondo.", 89, 2023, "5m", "Documentario Breve"),
            _movie("p2", "Napoleone in breve", "Ascesa e caduta dell'imperatore in 10 minuti.", 85, 2021, "10m", "Documentario Breve"),
            _movie("p3", "La Rivoluzione Industriale", "Come il vapore ha trasformato la società.", 94, 2022, "8m", "Educational"),
            _movie("p4", "Chi era Giulio Cesare?", "Ritratto rapido del condottiero romano.", 91, 2023, "12m", "Biografico"),
        ],
    ),
    Category(
        title="Scavi archeologici",
        movies=[
            _movie("s1", "Pompei: Gli Ultimi Giorni", "Documentario immersivo sugli scavi della Regio V.", 99, 2023, "1h 30m", "Documentario"),
            _movie("s2", "La Tomba Perduta", "Una spedizione nel deserto alla ricerca di una regina dimenticata.", 87, 2020, "1h 10m", "Avventura Reale"),
            _movie("s3", "Sotto Roma", "Esplorazione dei sotterranei della città eterna.", 93, 2022, "50m", "Documentario"),
            _movie("s4", "I Vichinghi in America", "Le prove archeologiche dello sbarco prima di Colombo.", 88, 2021, "1h 20m", "Storico"),
            _movie("s5", "Gobekli Tepe", "Il tempio più antico del mondo svelato.", 96, 2024, "1h 40m", "Documentario"),
        ],
    ),
    Category(title="Altri video", movies=[]),
)


def fallback_catalog() -> list[Category]:
    """Return a fresh copy of the static catalog."""

    return [category.model_copy(deep=True) for category in FALLBACK_CATALOG]
