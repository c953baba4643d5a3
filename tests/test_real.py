"""Real integration tests that make actual network requests.

These tests are skipped by default. Run them with:

    pytest --run-real -m real -v

Third-party tests additionally need ``ECOURTS_API_KEY`` in the environment
(or in ``.env``); they are skipped without it.
"""

import os

import pytest

real = pytest.mark.real

needs_key = pytest.mark.skipif(
    not os.environ.get("ECOURTS_API_KEY"), reason="ECOURTS_API_KEY not set"
)


@real
class TestPortalsReal:
    """The public eCourts portals are reachable and render their search page."""

    def test_district_portal_probe(self):
        from ecourts_resolver.sources import district_portal

        portal = district_portal()
        try:
            assert portal.probe() < 500
        finally:
            portal.close()

    def test_manual_mode_lookup_ends_cleanly(self):
        """A live portal lookup ends in one of the three result states."""
        from ecourts_resolver.resolver import ECourtsResolver, ResolverConfig

        resolver = ECourtsResolver(ResolverConfig(mode="manual", timeout=15, retry_attempts=0))
        try:
            result = resolver.get_case_by_cnr("DLHC010011762021")
        finally:
            resolver.close()
        out = result.to_dict()
        assert out["provider"]
        assert "responseTime" in out


@real
@needs_key
class TestKleopatraReal:
    def test_api_connectivity(self):
        from ecourts_resolver.resolver import ECourtsResolver, ResolverConfig

        resolver = ECourtsResolver(
            ResolverConfig(mode="third_party", api_key=os.environ["ECOURTS_API_KEY"])
        )
        try:
            report = resolver.test_api_connectivity()
        finally:
            resolver.close()
        assert report.success, report.error

    def test_get_case_by_cnr(self):
        from ecourts_resolver.resolver import ECourtsResolver, ResolverConfig

        resolver = ECourtsResolver(
            ResolverConfig(mode="third_party", api_key=os.environ["ECOURTS_API_KEY"])
        )
        try:
            result = resolver.get_case_by_cnr("DLHC010011762021")
        finally:
            resolver.close()
        if result.success:
            assert result.data.cnr == "DLHC010011762021"
            assert result.data.case_number
