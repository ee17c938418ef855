"""Tests for HTML generation."""

from datetime import datetime, timezone

from landingpage.models import ClusterSummary, ClusterView, GroupView, IngressEntry, IngressSnapshot
from landingpage.web import generate_cluster_section, generate_entry_card, generate_landing_page


def _entry(**kwargs) -> IngressEntry:
    values = dict(
        cluster_name="local",
        name="web",
        namespace="default",
        display_name="Website",
        description="Company website",
        hosts=("web.example.com",),
        urls=("https://web.example.com/",),
    )
    values.update(kwargs)
    return IngressEntry(**values)


class TestLandingPage:
    """Tests for generate_landing_page."""

    def test_empty_snapshot(self):
        html = generate_landing_page(IngressSnapshot())

        assert "<!DOCTYPE html>" in html
        assert "Landing Page" in html
        assert "Last refresh: Never" in html
        assert "0 services across 0 clusters" in html

    def test_grouped_snapshot(self):
        snapshot = IngressSnapshot(
            entries=(_entry(), _entry(cluster_name="foobar", name="api", display_name="API",
                                      hosts=("api.example.com",), urls=())),
            clusters=(
                ClusterSummary(name="local", group="local", entry_count=1),
                ClusterSummary(name="foobar", group="prod", description="Production", entry_count=1,
                               stale=True, error="timed out after 24s"),
            ),
            cluster_errors={"foobar": "timed out after 24s"},
            generated_at=datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc),
            generation=4,
        )

        html = generate_landing_page(snapshot, title="Our Services")

        assert "<h1>Our Services</h1>" in html
        assert "Last refresh: 2024-05-01 12:30:00 UTC" in html
        assert "1 cluster(s) failing" in html
        assert html.index('data-group="local"') < html.index('data-group="prod"')
        assert 'href="https://web.example.com/"' in html
        assert 'href="https://api.example.com/"' in html
        assert 'title="timed out after 24s"' in html
        assert "stale-badge" in html
        assert "Production" in html

    def test_title_escaped(self):
        html = generate_landing_page(IngressSnapshot(), title="<script>alert(1)</script>")

        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;" in html


class TestFragments:
    """Tests for entry and cluster fragments."""

    def test_entry_card_escapes_annotations(self):
        card = generate_entry_card(_entry(display_name="<b>Bold</b>", description='"quoted" & more'))

        assert "<b>Bold</b>" not in card
        assert "&lt;b&gt;Bold&lt;/b&gt;" in card
        assert "&quot;quoted&quot; &amp; more" in card

    def test_entry_card_without_description(self):
        card = generate_entry_card(_entry(description=""))

        assert "Company website" not in card
        assert "web.example.com" in card

    def test_cluster_without_entries(self):
        view = ClusterView(summary=ClusterSummary(name="foobar", group="prod", error="fetch failed: boom"))

        section = generate_cluster_section(view)

        assert "No services" in section
        assert "error-badge" in section
        assert "stale-badge" not in section

    def test_ungrouped_cluster(self):
        snapshot = IngressSnapshot(
            entries=(_entry(),),
            clusters=(ClusterSummary(name="local", entry_count=1),),
        )

        html = generate_landing_page(snapshot)

        assert "ungrouped" in html
        assert isinstance(snapshot.grouped()[0], GroupView)
