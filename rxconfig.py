"""
LexDesk — Reflex configuration.

Routes:
  /documents → Documents & folders
  /chat      → AI chat

The practice-management backend is a separate service (api.base_url in
lexdesk.yaml); the Reflex backend port must not collide with it.
"""

import reflex as rx

config = rx.Config(
    app_name="lexdesk",
    # Frontend port for dev server
    frontend_port=3000,
    # Reflex backend port (the practice API defaults to 8000)
    backend_port=8001,
    # Telemetry
    telemetry_enabled=False,
    # Disable unused default plugins
    disable_plugins=["reflex.plugins.sitemap.SitemapPlugin"],
)
