# Data access over the hosted Supabase store.
#
#   client.py     - Client construction and the shared query runner
#   models.py     - Canonical enums, normalisation, row shaping
#   workspaces.py - WorkspaceRepository
#   signals.py    - SignalRepository (workspace-scoped, de-duplicating inserts)
#   profiles.py   - SocialProfileRepository
#   schema.sql    - Table and index definitions applied to the Supabase project
