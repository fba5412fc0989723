"""HTML status page served at ``/``."""

from __future__ import annotations

from html import escape

from src.config import VERSION, BridgeConfig

_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Buildkite-Forgejo Webhook Bridge</title>
    <style>
        body {{ font-family: system-ui; max-width: 800px; margin: 50px auto; padding: 20px; }}
        code {{ background: #f4f4f4; padding: 2px 6px; border-radius: 3px; }}
        h1 {{ color: #333; }}
        .status {{ color: #28a745; }}
    </style>
</head>
<body>
    <h1>Buildkite-Forgejo Webhook Bridge</h1>
    <p class="status">&#10003; Service is running (v{version})</p>
    <h2>Configuration</h2>
    <ul>
        <li><strong>Buildkite Org:</strong> {org}</li>
        <li><strong>Webhook URL:</strong> <code>{webhook_url}</code></li>
    </ul>
    <h2>Setup Instructions</h2>
    <ol>
        <li>Go to your Forgejo repository settings</li>
        <li>Navigate to Webhooks &rarr; Add Webhook</li>
        <li>Set URL to: <code>{webhook_url}</code></li>
        <li>Set Content Type: <code>application/json</code></li>
        <li>Select trigger: <strong>Push events</strong></li>
        <li>Save and test!</li>
    </ol>
    <h2>Endpoints</h2>
    <ul>
        <li><code>/</code> - This page</li>
        <li><code>/health</code> - Health check endpoint</li>
        <li><code>/webhook/&lt;pipeline-slug&gt;</code> - Webhook receiver</li>
    </ul>
</body>
</html>"""


def render_status_page(config: BridgeConfig) -> str:
    return _TEMPLATE.format(
        version=VERSION,
        org=escape(config.org_slug),
        webhook_url=escape(
            f"http://your-host:{config.listen_port}/webhook/<pipeline-slug>",
        ),
    )
