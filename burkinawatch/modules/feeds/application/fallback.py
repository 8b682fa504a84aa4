"""Static fallback collection served when no news source yields anything."""

from datetime import datetime

from burkinawatch.modules.feeds.domain.entities import (
    NormalizedItem,
    SourceCategory,
    stable_item_id,
)

_FALLBACK_NEWS: tuple[tuple[str, str, str], ...] = (
    (
        "Présidence du Faso",
        "Conseil des ministres - Comptes-rendus hebdomadaires disponibles",
        "https://www.presidencedufaso.bf/",
    ),
    (
        "SIG",
        "Actions du Gouvernement - Actualités et réformes en cours",
        "https://www.sig.gov.bf/",
    ),
    (
        "AIB",
        "Agence d'Information du Burkina - Actualités nationales",
        "https://www.aib.media/",
    ),
    (
        "Gouvernement",
        "Burkina Faso : Développement socio-économique et sécuritaire",
        "https://www.presidencedufaso.bf/actualites/",
    ),
    (
        "Présidence du Faso",
        "Transition politique : Avancées et perspectives",
        "https://www.presidencedufaso.bf/",
    ),
)


def fallback_news(now: datetime) -> list[NormalizedItem]:
    """Build the fallback news collection, stamped with ``now``."""
    return [
        NormalizedItem(
            id=stable_item_id("fallback", link, title),
            source_name=source,
            title=title,
            body_snippet="",
            link=link,
            published_at=now,
            category=SourceCategory.OFFICIAL.value,
        )
        for source, title, link in _FALLBACK_NEWS
    ]
