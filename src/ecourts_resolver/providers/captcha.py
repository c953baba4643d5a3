"""CAPTCHA gate strategies.

A gate answers one question before a portal-backed operation runs: does the
portal currently demand a CAPTCHA? :class:`HtmlCaptchaGate` asks the portal;
:class:`StaticCaptchaGate` returns a fixed answer and is what tests and
offline tooling inject.
"""

import dataclasses
import logging

from ecourts_resolver.providers.scraper_common import ScraperBaseClient, find_captcha

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class CaptchaChallenge:
    captcha_url: str
    session_id: str


class CaptchaGate:
    """Base class for CAPTCHA gates."""

    def check(self, client: ScraperBaseClient, page_url: str) -> CaptchaChallenge | None:
        raise NotImplementedError


class HtmlCaptchaGate(CaptchaGate):
    """Fetch *page_url* and look for a CAPTCHA image or input field."""

    def check(self, client: ScraperBaseClient, page_url: str) -> CaptchaChallenge | None:
        tree = client._get_html_tree(page_url)
        captcha_url = find_captcha(tree, page_url)
        if captcha_url is None:
            return None
        session_id = client.session_id()
        logger.info("CAPTCHA required on %s (session %s)", page_url, session_id or "-")
        return CaptchaChallenge(captcha_url=captcha_url, session_id=session_id)


class StaticCaptchaGate(CaptchaGate):
    def __init__(self, challenge: CaptchaChallenge | None = None):
        self.challenge = challenge

    def check(self, client: ScraperBaseClient, page_url: str) -> CaptchaChallenge | None:
        return self.challenge
