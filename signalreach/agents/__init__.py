# Agents that talk to external services on behalf of the gateway.
#
#   llm_gateway.py    - OpenAI-compatible chat client wrapper for reply drafts
#   prompt_builder.py - Tone- and platform-aware reply prompt
#   scraper.py        - Apify Reddit actor runner and item-to-signal mapping
#   scrape_runner.py  - Cron fan-out across workspaces with failure isolation
#   error_handler.py  - Non-fatal unit error logging and safe execution
