"""Static source registry, one list per aggregation domain."""

from collections.abc import Mapping

from burkinawatch.modules.feeds.domain.entities import (
    FeedDomain,
    SourceCategory,
    SourceDescriptor,
)

NEWS_SOURCES: tuple[SourceDescriptor, ...] = (
    SourceDescriptor(
        name="Présidence du Faso",
        endpoint="https://www.presidencedufaso.bf/feed/",
        category=SourceCategory.OFFICIAL,
    ),
    SourceDescriptor(
        name="SIG",
        endpoint="https://www.sig.gov.bf/?type=9818",
        category=SourceCategory.OFFICIAL,
    ),
    SourceDescriptor(
        name="Lefaso.net",
        endpoint="https://lefaso.net/spip.php?page=backend",
        category=SourceCategory.MEDIA,
    ),
    SourceDescriptor(
        name="Burkina24",
        endpoint="https://burkina24.com/feed/",
        category=SourceCategory.MEDIA,
    ),
)

BULLETIN_SOURCES: tuple[SourceDescriptor, ...] = (
    # Official
    SourceDescriptor(
        name="AIB",
        endpoint="https://www.aib.bf/feed/",
        category=SourceCategory.OFFICIAL,
        fallback_endpoint="https://www.aib.bf/spip.php?page=backend",
    ),
    SourceDescriptor(
        name="Sidwaya",
        endpoint="https://www.sidwaya.info/feed/",
        category=SourceCategory.OFFICIAL,
    ),
    # National media
    SourceDescriptor(
        name="Lefaso.net",
        endpoint="https://lefaso.net/spip.php?page=backend",
        category=SourceCategory.MEDIA,
    ),
    SourceDescriptor(
        name="Burkina24",
        endpoint="https://burkina24.com/feed/",
        category=SourceCategory.MEDIA,
    ),
    SourceDescriptor(
        name="Fasozine",
        endpoint="https://www.fasozine.com/feed/",
        category=SourceCategory.MEDIA,
    ),
    SourceDescriptor(
        name="L'Economiste du Faso",
        endpoint="https://www.leconomistedufaso.bf/feed/",
        category=SourceCategory.ECONOMY,
    ),
    SourceDescriptor(
        name="Wakatsera",
        endpoint="https://www.wakatsera.com/feed/",
        category=SourceCategory.MEDIA,
    ),
    SourceDescriptor(
        name="Libre Info",
        endpoint="https://www.libreinfo.net/feed/",
        category=SourceCategory.MEDIA,
    ),
    SourceDescriptor(
        name="InfoWakat",
        endpoint="https://www.infowakat.net/feed/",
        category=SourceCategory.MEDIA,
    ),
    SourceDescriptor(
        name="NetAfrique",
        endpoint="https://netafrique.net/feed/",
        category=SourceCategory.MEDIA,
    ),
    # International / West Africa
    SourceDescriptor(
        name="BBC Afrique",
        endpoint="https://www.bbc.com/afrique/rss/afrique.xml",
        category=SourceCategory.INTERNATIONAL,
    ),
    SourceDescriptor(
        name="Jeune Afrique",
        endpoint="https://www.jeuneafrique.com/feeds/rss/",
        category=SourceCategory.INTERNATIONAL,
    ),
    SourceDescriptor(
        name="VOA Afrique",
        endpoint="https://www.voaafrique.com/api/ztkoetiv",
        category=SourceCategory.INTERNATIONAL,
    ),
    # Regional (ECOWAS / Sahel)
    SourceDescriptor(
        name="MaliActu",
        endpoint="https://maliactu.net/feed/",
        category=SourceCategory.REGIONAL,
    ),
    SourceDescriptor(
        name="Niger Diaspora",
        endpoint="https://www.nigerdiaspora.net/feed/",
        category=SourceCategory.REGIONAL,
    ),
    SourceDescriptor(
        name="Abidjan.net",
        endpoint="https://news.abidjan.net/rss/",
        category=SourceCategory.REGIONAL,
    ),
)

EVENT_SOURCES: tuple[SourceDescriptor, ...] = (
    SourceDescriptor(
        name="Lefaso.net",
        endpoint="https://lefaso.net/spip.php?page=backend",
        category=SourceCategory.MEDIA,
    ),
    SourceDescriptor(
        name="Sidwaya",
        endpoint="https://www.sidwaya.info/feed/",
        category=SourceCategory.OFFICIAL,
    ),
    SourceDescriptor(
        name="Fasonews",
        endpoint="https://fasonews.africa/feed/",
        category=SourceCategory.MEDIA,
    ),
    SourceDescriptor(
        name="Fasozine",
        endpoint="https://www.fasozine.com/feed/",
        category=SourceCategory.MEDIA,
    ),
    SourceDescriptor(
        name="Libre Info",
        endpoint="https://www.libreinfo.net/feed/",
        category=SourceCategory.MEDIA,
    ),
    SourceDescriptor(
        name="Wakat Séra",
        endpoint="https://www.wakat.bf/feed/",
        category=SourceCategory.MEDIA,
    ),
    SourceDescriptor(
        name="AIB",
        endpoint="https://www.aib.bf/spip.php?page=backend",
        category=SourceCategory.OFFICIAL,
    ),
)

SOURCE_REGISTRY: Mapping[FeedDomain, tuple[SourceDescriptor, ...]] = {
    FeedDomain.NEWS: NEWS_SOURCES,
    FeedDomain.BULLETINS: BULLETIN_SOURCES,
    FeedDomain.EVENTS: EVENT_SOURCES,
}


def sources_for(domain: FeedDomain) -> tuple[SourceDescriptor, ...]:
    return SOURCE_REGISTRY[domain]
