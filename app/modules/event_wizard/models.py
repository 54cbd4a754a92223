# Supabase table: event_drafts
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

event_drafts:
- id: uuid (primary key)
- user_id: uuid (not null) - creator, always organizers[0]
- step: integer (not null, default: 1) - 1 details, 2 collaborators, 3 media, 4 preview
- title: text (not null, default: '')
- location: text (not null, default: '')
- date: text (not null, default: '') - validated on confirm only
- visibility: text (not null, default: 'public')
- category: text (not null, default: 'General')
- organizers: text[] (not null)
- description: text (not null, default: '')
- selected_image: text (nullable)
- searched_images: text[] (not null, default: '{}')
- invite_link: text (not null, default: '')
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

A draft is deleted once its event has been created.
"""
