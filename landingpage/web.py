"""HTML landing page rendered from an ingress snapshot."""

from html import escape
from typing import List

from .models import ClusterView, GroupView, IngressEntry, IngressSnapshot

AUTO_RELOAD_MS = 60000


def generate_landing_page(snapshot: IngressSnapshot, title: str = "Landing Page") -> str:
    """Render the full page for a snapshot."""
    groups = snapshot.grouped()
    generated = (
        snapshot.generated_at.strftime("%Y-%m-%d %H:%M:%S UTC") if snapshot.generated_at else "Never"
    )
    failed = len(snapshot.cluster_errors)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(title)}</title>
    <style>
        * {{ margin: 0; padding: 0; box-sizing: border-box; }}
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
            min-height: 100vh;
            padding: 20px;
        }}
        .container {{ max-width: 1200px; margin: 0 auto; }}
        .header {{ text-align: center; color: white; margin-bottom: 30px; }}
        .header h1 {{ font-size: 2.5rem; margin-bottom: 10px; }}
        .search-box {{
            width: 100%;
            padding: 12px;
            border: 2px solid #e1e5e9;
            border-radius: 8px;
            font-size: 1rem;
            margin-bottom: 30px;
        }}
        .group-section {{
            background: white;
            border-radius: 10px;
            margin-bottom: 20px;
            overflow: hidden;
            box-shadow: 0 4px 6px rgba(0,0,0,0.1);
        }}
        .group-header {{
            background: #667eea;
            color: white;
            padding: 15px 20px;
            font-size: 1.2rem;
            font-weight: bold;
        }}
        .cluster {{ padding: 15px 20px; border-bottom: 1px solid #e1e5e9; }}
        .cluster-header {{ font-weight: 600; margin-bottom: 10px; }}
        .cluster-description {{ color: #666; font-weight: normal; margin-left: 8px; }}
        .error-badge {{
            background: #ef4444;
            color: white;
            padding: 2px 8px;
            border-radius: 12px;
            font-size: 0.75rem;
            margin-left: 8px;
        }}
        .stale-badge {{
            background: #f59e0b;
            color: white;
            padding: 2px 8px;
            border-radius: 12px;
            font-size: 0.75rem;
            margin-left: 8px;
        }}
        .entries-grid {{
            display: grid;
            grid-template-columns: repeat(auto-fill, minmax(280px, 1fr));
            gap: 15px;
        }}
        .entry-card {{ border: 1px solid #e1e5e9; border-radius: 8px; padding: 15px; }}
        .entry-card:hover {{ border-color: #667eea; }}
        .entry-link {{ color: #667eea; text-decoration: none; font-weight: 600; display: block; margin-bottom: 6px; }}
        .entry-meta {{ font-size: 0.85rem; color: #666; line-height: 1.4; }}
        .empty {{ color: #666; font-style: italic; }}
        .generated {{ text-align: center; color: white; opacity: 0.8; margin-top: 20px; font-size: 0.9rem; }}
        .hidden {{ display: none !important; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{escape(title)}</h1>
            <p>{len(snapshot.entries)} services across {len(snapshot.clusters)} clusters</p>
        </div>
        <input type="text" class="search-box" placeholder="Search services..." oninput="filterEntries(this.value)">
        <div id="groups">
            {generate_group_sections(groups)}
        </div>
        <div class="generated">
            Last refresh: {generated}{f" &middot; {failed} cluster(s) failing" if failed else ""}
        </div>
    </div>
    <script>
        function filterEntries(term) {{
            term = term.toLowerCase();
            document.querySelectorAll('.entry-card').forEach(card => {{
                card.classList.toggle('hidden', !card.textContent.toLowerCase().includes(term));
            }});
        }}
        setTimeout(() => {{ location.reload(); }}, {AUTO_RELOAD_MS});
    </script>
</body>
</html>
"""


def generate_entry_card(entry: IngressEntry) -> str:
    href = entry.urls[0] if entry.urls else f"https://{entry.hosts[0]}/"
    description = f'<div>{escape(entry.description)}</div>' if entry.description else ""
    return f"""
                <div class="entry-card">
                    <a href="{escape(href)}" target="_blank" class="entry-link">{escape(entry.display_name)}</a>
                    <div class="entry-meta">
                        {description}
                        <div>{escape(", ".join(entry.hosts))}</div>
                        <div><strong>Namespace:</strong> {escape(entry.namespace)}</div>
                    </div>
                </div>"""


def generate_cluster_section(view: ClusterView) -> str:
    summary = view.summary
    badges = ""
    if summary.error:
        badges += f'<span class="error-badge" title="{escape(summary.error)}">error</span>'
    if summary.stale:
        badges += '<span class="stale-badge">stale</span>'
    description = (
        f'<span class="cluster-description">{escape(summary.description)}</span>' if summary.description else ""
    )
    cards = "".join(generate_entry_card(e) for e in view.entries) or '<div class="empty">No services</div>'
    return f"""
            <div class="cluster" data-cluster="{escape(summary.name)}">
                <div class="cluster-header">{escape(summary.name)}{description}{badges}</div>
                <div class="entries-grid">{cards}
                </div>
            </div>"""


def generate_group_sections(groups: List[GroupView]) -> str:
    """One section per display group, holding its clusters."""
    sections = []
    for group in groups:
        clusters = "".join(generate_cluster_section(view) for view in group.clusters)
        sections.append(f"""
        <div class="group-section" data-group="{escape(group.name)}">
            <div class="group-header">{escape(group.name or "ungrouped")}</div>
            {clusters}
        </div>""")
    return "".join(sections)
