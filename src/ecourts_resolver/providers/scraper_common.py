"""Scraper base client and eCourts HTML parsing helpers.

Provides the pieces shared by the portal-backed code paths:
- CAPTCHA detection on portal pages
- case-status page parsing into the nested shape read by
  :func:`~ecourts_resolver.normalizers.normalize_kleopatra`
- PDF text extraction with pymupdf
"""

import logging
import re
from urllib.parse import urljoin

import lxml.html
from lxml.cssselect import CSSSelector

from ecourts_resolver.providers.http_client import HttpBaseClient

logger = logging.getLogger(__name__)

CAPTCHA_SELECTORS = ('img[src*="captcha"]', 'input[name*="captcha"]')

# case-status page label -> (section, key)
_FIELD_LABELS = {
    "case type": ("details", "type"),
    "filing number": ("details", "filingNumber"),
    "filing date": ("details", "filingDate"),
    "registration number": ("details", "registrationNumber"),
    "registration date": ("details", "registrationDate"),
    "cnr number": ("details", "cnr"),
    "first hearing date": ("status", "firstHearingDate"),
    "next hearing date": ("status", "nextHearingDate"),
    "last hearing date": ("status", "lastHearingDate"),
    "decision date": ("status", "decisionDate"),
    "case stage": ("status", "caseStage"),
    "case status": ("status", "caseStage"),
    "stage of case": ("status", "caseStage"),
    "nature of disposal": ("status", "natureOfDisposal"),
    "court number and judge": ("status", "courtNumberAndJudge"),
}

_PARTY_ENTRY_RE = re.compile(r"(?:^|\s)\d+\)\s*")
_ADVOCATE_RE = re.compile(r"\bAdvocate\s*[-:]\s*", re.IGNORECASE)


def _text(element) -> str:
    return " ".join(element.text_content().split())


def _label(text: str) -> str:
    return text.strip().rstrip(":").strip().lower()


def to_tree(html_or_tree) -> lxml.html.HtmlElement:
    if isinstance(html_or_tree, str):
        return lxml.html.fromstring(html_or_tree or "<html></html>")
    return html_or_tree


def find_captcha(html_or_tree, page_url: str = "") -> str | None:
    """Return the CAPTCHA image URL if the page asks for one, else ``None``.

    A CAPTCHA input without an image yields *page_url* itself.
    """
    tree = to_tree(html_or_tree)
    images = CSSSelector(CAPTCHA_SELECTORS[0])(tree)
    if images:
        return urljoin(page_url, images[0].get("src", ""))
    if CSSSelector(CAPTCHA_SELECTORS[1])(tree):
        return page_url
    return None


def _split_party_block(text: str) -> tuple[list[str], list[str]]:
    """Split ``"1) A Advocate- X 2) B"`` into party names and advocate names."""
    names, advocates = [], []
    for entry in _PARTY_ENTRY_RE.split(text):
        entry = entry.strip()
        if not entry:
            continue
        parts = _ADVOCATE_RE.split(entry, maxsplit=1)
        name = parts[0].strip(" ,")
        if name:
            names.append(name)
        if len(parts) > 1 and parts[1].strip():
            advocates.append(parts[1].strip(" ,"))
    return names, advocates


def _table_rows(tree, selector: str) -> list[list[str]]:
    rows = []
    for table in CSSSelector(selector)(tree):
        for tr in table.iter("tr"):
            cells = [_text(td) for td in tr if td.tag in ("td", "th")]
            if cells:
                rows.append(cells)
    return rows


def _data_rows(rows: list[list[str]], min_cells: int) -> list[list[str]]:
    """Drop header rows (``th`` labels echoed as the first row)."""
    out = []
    for cells in rows:
        if len(cells) < min_cells:
            continue
        if out == [] and not any(ch.isdigit() for ch in "".join(cells)):
            continue
        out.append(cells)
    return out


def parse_case_status_html(html_or_tree, base_url: str = "") -> dict:
    """Parse an eCourts case-status page into a nested case payload.

    Label/value cells may sit anywhere in the page; party, acts, history and
    order tables are located by the class names the eCourts portals use.
    Missing sections are simply absent from the result.
    """
    tree = to_tree(html_or_tree)
    data: dict = {"details": {}, "status": {}}

    cells = [td for td in tree.iter("td", "th", "label")]
    for index, cell in enumerate(cells[:-1]):
        target = _FIELD_LABELS.get(_label(_text(cell)))
        if target is None:
            continue
        value = _text(cells[index + 1])
        if value and _label(value) not in _FIELD_LABELS:
            section, key = target
            data[section].setdefault(key, value)

    cnr = data["details"].pop("cnr", "")
    if cnr:
        data["cnr"] = cnr.split()[0]

    petitioners, petitioner_advocates = [], []
    for block in CSSSelector(".Petitioner_Advocate_table, .petitioner-advocate-list")(tree):
        names, advocates = _split_party_block(_text(block))
        petitioners += names
        petitioner_advocates += advocates
    respondents, respondent_advocates = [], []
    for block in CSSSelector(".Respondent_Advocate_table, .respondent-advocate-list")(tree):
        names, advocates = _split_party_block(_text(block))
        respondents += names
        respondent_advocates += advocates
    if petitioners or respondents:
        data["parties"] = {
            "petitioners": petitioners,
            "respondents": respondents,
            "petitionerAdvocates": petitioner_advocates,
            "respondentAdvocates": respondent_advocates,
        }
        if petitioners and respondents:
            data["title"] = f"{petitioners[0]} vs {respondents[0]}"

    acts_rows = _table_rows(tree, ".acts_table, #act_table")
    acts = [row for row in acts_rows if len(row) >= 2 and "under act" not in row[0].lower()]
    if acts:
        data["actsAndSections"] = {
            "acts": ", ".join(row[0] for row in acts if row[0]),
            "sections": ", ".join(row[1] for row in acts if row[1]),
        }

    hearings = []
    for row in _data_rows(_table_rows(tree, ".history_table"), 3):
        hearing = {"judge": row[0], "businessDate": row[1], "date": row[2]}
        if len(row) > 3:
            hearing["purpose"] = row[3]
        hearings.append(hearing)
    if hearings:
        data["history"] = {"hearings": hearings}

    orders = []
    for table in CSSSelector(".order_table")(tree):
        for tr in table.iter("tr"):
            cells = [td for td in tr if td.tag == "td"]
            if len(cells) < 2 or not any(ch.isdigit() for ch in _text(cells[0])):
                continue
            order = {"orderNumber": _text(cells[0]), "orderDate": _text(cells[1])}
            if len(cells) > 2:
                order["orderName"] = _text(cells[2])
                links = cells[2].xpath(".//a/@href")
                if links:
                    order["url"] = urljoin(base_url, links[0])
            orders.append(order)
    if orders:
        data["orders"] = orders

    return data


class ScraperBaseClient(HttpBaseClient):
    """HTTP client with HTML and PDF scraping utilities."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.session.headers["Accept"] = "text/html,application/xhtml+xml,*/*"

    def _get_html_tree(self, url_or_path: str, **params) -> lxml.html.HtmlElement:
        """Fetch HTML and return parsed lxml tree."""
        text = self._get(url_or_path, params=params).text.replace("\r\n", "\n")
        return to_tree(text)

    def session_id(self) -> str:
        """Identifier of the portal session held by this client's cookies."""
        for name in ("PHPSESSID", "JSESSIONID", "SERVICES_SESSID"):
            value = self.session.cookies.get(name)
            if value:
                return value
        for cookie in self.session.cookies:
            return cookie.value
        return ""

    def _extract_text_from_pdf(self, url: str) -> str:
        """Download PDF from *url* and return its text, pages separated by blank lines."""
        import pymupdf

        resp = self._get(url)
        doc = pymupdf.open(stream=resp.content, filetype="pdf")
        pages = []
        for page in doc:
            text = page.get_text()
            if text.strip():
                pages.append(text.strip())
        doc.close()
        return "\n\n".join(pages)
