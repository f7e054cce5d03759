# SignalReach Gateway
# Keyword monitoring of social posts, scraped signals, and AI reply drafts.
#
# Key modules:
#   config.py             - Environment-driven settings (Settings.from_env)
#   session.py            - Session store over Supabase auth
#   workspace_resolver.py - Active workspace selection and onboarding routing
#   lifecycle.py          - Signal lifecycle panel state machine
#   agents/               - LLM gateway, prompt builder, Apify scraper, scrape runner
#   db/                   - Supabase repositories for workspaces, signals, profiles
#   api/                  - FastAPI app and routers

__version__ = "1.0.0"
