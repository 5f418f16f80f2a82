from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class TrustedRetailer:
    name: str
    domain: str
    aliases: Tuple[str, ...] = ()  # other spellings seen in shopping results


def _r(name: str, domain: str, *aliases: str) -> TrustedRetailer:
    return TrustedRetailer(name=name, domain=domain, aliases=aliases)


# Only offers from these stores are shown, per country
TRUSTED_RETAILERS: Dict[str, Tuple[TrustedRetailer, ...]] = {
    "in": (
        _r("Amazon India", "amazon.in", "amazon", "amazon.in"),
        _r("Flipkart", "flipkart.com", "flipkart"),
        _r("Reliance Digital", "reliancedigital.in", "reliance digital", "reliance"),
        _r("Croma", "croma.com", "croma"),
        _r("Vijay Sales", "vijaysales.com", "vijay sales"),
        _r("Tata Cliq", "tatacliq.com", "tata cliq", "tatacliq"),
    ),
    "us": (
        _r("Amazon", "amazon.com", "amazon", "amazon.com"),
        _r("Walmart", "walmart.com", "walmart"),
        _r("Best Buy", "bestbuy.com", "best buy", "bestbuy"),
        _r("eBay", "ebay.com", "ebay"),
        _r("B&H Photo Video", "bhphotovideo.com", "b&h", "b&h photo", "bhphotovideo"),
        _r("Target", "target.com", "target"),
        _r("Costco", "costco.com", "costco"),
        _r("Newegg", "newegg.com", "newegg"),
        _r("Apple", "apple.com", "apple"),
    ),
    "gb": (
        _r("Amazon UK", "amazon.co.uk", "amazon", "amazon.co.uk", "amazon uk"),
        _r("Argos", "argos.co.uk", "argos"),
        _r("Currys", "currys.co.uk", "currys", "curry's"),
        _r("John Lewis", "johnlewis.com", "john lewis"),
        _r("Very", "very.co.uk", "very"),
        _r("AO", "ao.com", "ao", "ao.com"),
    ),
    "de": (
        _r("Amazon Germany", "amazon.de", "amazon", "amazon.de", "amazon germany"),
        _r("MediaMarkt", "mediamarkt.de", "mediamarkt", "media markt"),
        _r("Saturn", "saturn.de", "saturn"),
        _r("Otto", "otto.de", "otto"),
        _r("Cyberport", "cyberport.de", "cyberport"),
        _r("Notebooksbilliger", "notebooksbilliger.de", "notebooksbilliger"),
        _r("Alternate", "alternate.de", "alternate"),
        _r("Conrad", "conrad.de", "conrad"),
    ),
    "fr": (
        _r("Amazon France", "amazon.fr", "amazon", "amazon.fr", "amazon france"),
        _r("Fnac", "fnac.com", "fnac"),
        _r("Darty", "darty.com", "darty"),
        _r("Boulanger", "boulanger.com", "boulanger"),
        _r("Cdiscount", "cdiscount.com", "cdiscount"),
        _r("Rue du Commerce", "rueducommerce.fr", "rue du commerce", "rueducommerce"),
    ),
    "au": (
        _r("Amazon Australia", "amazon.com.au", "amazon", "amazon.com.au", "amazon australia"),
        _r("JB Hi-Fi", "jbhifi.com.au", "jb hi-fi", "jb hifi", "jbhifi"),
        _r("Harvey Norman", "harveynorman.com.au", "harvey norman"),
        _r("The Good Guys", "thegoodguys.com.au", "the good guys", "good guys"),
        _r("Kogan", "kogan.com", "kogan"),
        _r("Officeworks", "officeworks.com.au", "officeworks"),
        _r("Big W", "bigw.com.au", "big w", "bigw"),
    ),
    "ca": (
        _r("Amazon Canada", "amazon.ca", "amazon", "amazon.ca", "amazon canada"),
        _r("Best Buy Canada", "bestbuy.ca", "best buy", "bestbuy"),
        _r("Canada Computers", "canadacomputers.com", "canada computers"),
        _r("Staples", "staples.ca", "staples"),
        _r("The Source", "thesource.ca", "the source"),
        _r("Walmart Canada", "walmart.ca", "walmart"),
    ),
    "jp": (
        _r("Amazon Japan", "amazon.co.jp", "amazon", "amazon.co.jp", "amazon japan", "amazon公式サイト"),
        _r("Rakuten", "rakuten.co.jp", "rakuten", "楽天"),
        _r("Bic Camera", "biccamera.com", "bic camera", "biccamera", "ビックカメラ"),
        _r("Yodobashi", "yodobashi.com", "yodobashi", "ヨドバシ"),
        _r("Yamada Denki", "yamada-denkiweb.com", "yamada denki", "yamada", "ヤマダ電機"),
        _r("Joshin", "joshinweb.jp", "joshin", "ジョーシン"),
        _r("Nojima", "nojima.co.jp", "nojima", "ノジマ"),
    ),
    "sg": (
        _r("Amazon Singapore", "amazon.sg", "amazon", "amazon.sg", "amazon singapore"),
        _r("Shopee Singapore", "shopee.sg", "shopee"),
        _r("Lazada Singapore", "lazada.sg", "lazada"),
        _r("Courts", "courts.com.sg", "courts"),
        _r("Challenger", "challenger.sg", "challenger"),
        _r("Harvey Norman Singapore", "harveynorman.com.sg", "harvey norman"),
    ),
    "ae": (
        _r("Amazon UAE", "amazon.ae", "amazon", "amazon.ae", "amazon uae"),
        _r("Noon", "noon.com", "noon"),
        _r("Sharaf DG", "sharafdg.com", "sharaf dg", "sharaf"),
        _r("Jumbo Electronics", "jumbo.ae", "jumbo", "jumbo electronics"),
        _r("Carrefour UAE", "carrefouruae.com", "carrefour"),
        _r("Virgin Megastore", "virginmegastore.ae", "virgin", "virgin megastore"),
    ),
}


def matches_retailer(store: Optional[str], retailers: Sequence[TrustedRetailer]) -> bool:
    """
    True when `store` (a store name or a product URL) belongs to one of
    `retailers`.

    Matches on domain, display name or alias contained in `store`, or on
    `store` being a piece of an alias ("Reliance Dig" from a truncated
    source), the latter only for inputs longer than 3 characters.
    """
    if not retailers or not store:
        return False

    low = store.lower().strip()

    for retailer in retailers:
        if retailer.domain in low:
            return True
        if retailer.name.lower() in low:
            return True
        for alias in retailer.aliases:
            alias = alias.lower()
            if alias in low:
                return True
            if len(low) > 3 and low in alias:
                return True

    return False


def is_trusted(store: Optional[str], country_code: str) -> bool:
    """Unknown countries trust nobody."""
    return matches_retailer(store, TRUSTED_RETAILERS.get((country_code or "").lower(), ()))


def trusted_retailer_names(country_code: str) -> List[str]:
    return [r.name for r in TRUSTED_RETAILERS.get((country_code or "").lower(), ())]


def trusted_domains(country_code: str) -> List[str]:
    return [r.domain for r in TRUSTED_RETAILERS.get((country_code or "").lower(), ())]
