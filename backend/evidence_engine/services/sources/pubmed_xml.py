"""
Pattern-based extraction of PubMed efetch XML.

Each field is pulled out with its own regular expression, so a malformed
fragment only loses that field. Field extractors are exposed individually
so they can be tested one by one.
"""
import html
import re
from typing import Dict, List, Optional

from evidence_engine.core.logging import get_logger

logger = get_logger(__name__)

_ARTICLE = re.compile(r"<PubmedArticle(?:\s[^>]*)?>([\s\S]*?)</PubmedArticle>")
_PMID = re.compile(r"<PMID[^>]*>(\d+)</PMID>")
_TITLE = re.compile(r"<ArticleTitle[^>]*>([\s\S]*?)</ArticleTitle>")
_ABSTRACT_TEXT = re.compile(r"<AbstractText[^>]*>([\s\S]*?)</AbstractText>")
_AUTHOR = re.compile(r"<Author(?:\s[^>]*)?>([\s\S]*?)</Author>")
_LAST_NAME = re.compile(r"<LastName[^>]*>([^<]+)</LastName>")
_FORE_NAME = re.compile(r"<ForeName[^>]*>([^<]+)</ForeName>")
_COLLECTIVE_NAME = re.compile(r"<CollectiveName[^>]*>([^<]+)</CollectiveName>")
_JOURNAL_TITLE = re.compile(r"<Journal(?:\s[^>]*)?>[\s\S]*?<Title[^>]*>([^<]+)</Title>")
_VOLUME = re.compile(r"<Volume[^>]*>([^<]+)</Volume>")
_ISSUE = re.compile(r"<Issue[^>]*>([^<]+)</Issue>")
_PAGES = re.compile(r"<MedlinePgn[^>]*>([^<]+)</MedlinePgn>")
_PUB_DATE = re.compile(r"<PubDate[^>]*>([\s\S]*?)</PubDate>")
_YEAR = re.compile(r"<Year[^>]*>(\d{4})</Year>")
_MONTH = re.compile(r"<Month[^>]*>([^<]+)</Month>")
_MEDLINE_DATE = re.compile(r"<MedlineDate[^>]*>(\d{4})")
_ELOCATION_DOI = re.compile(r"<ELocationID[^>]*EIdType=\"doi\"[^>]*>([^<]+)</ELocationID>")
_ARTICLE_ID_DOI = re.compile(r"<ArticleId[^>]*IdType=\"doi\"[^>]*>([^<]+)</ArticleId>")
_MESH_DESCRIPTOR = re.compile(r"<DescriptorName[^>]*>([^<]+)</DescriptorName>")
_KEYWORD = re.compile(r"<Keyword(?:\s[^>]*)?>([\s\S]*?)</Keyword>")
_PUBLICATION_TYPE = re.compile(r"<PublicationType(?:\s[^>]*)?>([^<]+)</PublicationType>")
_TAG = re.compile(r"<[^>]+>")

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}


def _text(fragment: str) -> str:
    """Strip inline markup (<i>, <sup>...) and decode entities."""
    return html.unescape(_TAG.sub("", fragment)).strip()


def _first(pattern: re.Pattern, xml: str) -> Optional[str]:
    match = pattern.search(xml)
    return _text(match.group(1)) if match else None


def _first_raw(pattern: re.Pattern, xml: str) -> Optional[str]:
    match = pattern.search(xml)
    return match.group(1) if match else None


def _unique(values: List[str]) -> List[str]:
    return list(dict.fromkeys(v for v in values if v))


def extract_pmid(xml: str) -> Optional[str]:
    return _first(_PMID, xml)


def extract_title(xml: str) -> Optional[str]:
    return _first(_TITLE, xml) or None


def extract_abstract(xml: str) -> Optional[str]:
    """Join every AbstractText segment (structured abstracts have several)."""
    sections = [_text(s) for s in _ABSTRACT_TEXT.findall(xml)]
    joined = " ".join(s for s in sections if s)
    return joined or None


def extract_authors(xml: str) -> List[str]:
    authors = []
    for block in _AUTHOR.findall(xml):
        collective = _first(_COLLECTIVE_NAME, block)
        if collective:
            authors.append(collective)
            continue
        name = f"{_first(_FORE_NAME, block) or ''} {_first(_LAST_NAME, block) or ''}".strip()
        if name:
            authors.append(name)
    return authors


def extract_journal(xml: str) -> Dict[str, Optional[str]]:
    return {
        "title": _first(_JOURNAL_TITLE, xml) or "",
        "volume": _first(_VOLUME, xml),
        "issue": _first(_ISSUE, xml),
        "pages": _first(_PAGES, xml),
    }


def extract_publication_date(xml: str) -> Optional[str]:
    """ISO date from PubDate; month defaults to January, day to the 1st."""
    block = _first_raw(_PUB_DATE, xml)
    if block is None:
        return None

    year = _first(_YEAR, block) or _first(_MEDLINE_DATE, block)
    if not year:
        return None

    month_text = (_first(_MONTH, block) or "").lower()
    if month_text.isdigit():
        month = int(month_text)
    else:
        month = _MONTHS.get(month_text[:3], 1)
    if not 1 <= month <= 12:
        month = 1
    return f"{year}-{month:02d}-01"


def extract_doi(xml: str) -> Optional[str]:
    return _first(_ELOCATION_DOI, xml) or _first(_ARTICLE_ID_DOI, xml)


def extract_mesh_terms(xml: str) -> List[str]:
    return _unique([_text(t) for t in _MESH_DESCRIPTOR.findall(xml)])


def extract_keywords(xml: str) -> List[str]:
    return _unique([_text(k) for k in _KEYWORD.findall(xml)])


def extract_publication_types(xml: str) -> List[str]:
    return _unique([_text(t) for t in _PUBLICATION_TYPE.findall(xml)])


def parse_article(article_xml: str) -> Optional[Dict]:
    """
    Parse one PubmedArticle fragment.

    Returns:
        Raw article dict, or None when PMID or title is missing
    """
    pmid = extract_pmid(article_xml)
    title = extract_title(article_xml)
    if not pmid or not title:
        return None

    journal = extract_journal(article_xml)
    return {
        "pmid": pmid,
        "title": title,
        "abstract": extract_abstract(article_xml),
        "authors": extract_authors(article_xml),
        "journal": journal["title"],
        "volume": journal["volume"],
        "issue": journal["issue"],
        "pages": journal["pages"],
        "publication_date": extract_publication_date(article_xml),
        "doi": extract_doi(article_xml),
        "mesh_terms": extract_mesh_terms(article_xml),
        "keywords": extract_keywords(article_xml),
        "publication_types": extract_publication_types(article_xml),
    }


def parse_articles(xml_text: str) -> List[Dict]:
    """Parse every PubmedArticle in an efetch response; bad fragments are skipped."""
    articles = []

    for fragment in _ARTICLE.findall(xml_text or ""):
        try:
            article = parse_article(fragment)
        except (ValueError, IndexError) as e:
            logger.warning(f"Failed to parse PubMed article: {e}")
            continue
        if article:
            articles.append(article)

    return articles
