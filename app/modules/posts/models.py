# Supabase table: posts
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

posts:
- id: uuid (primary key)
- event_id: uuid (foreign key -> events.id)
- user_id: uuid (not null) - author
- media_url: text (not null) - public URL
- media_key: text (nullable) - object storage key, used to delete the blob
- type: text (not null) - values: photo, video
- visibility: text (not null) - values: public, private; always private on private events
- likes: text[] (not null, default: '{}')
- like_count: integer (not null, default: 0) - len(likes), kept for sorting
- comments: jsonb (not null, default: '[]') - [{user_id, text, created_at}]
- version: integer (not null, default: 0) - optimistic concurrency guard
- created_at: timestamp (default: now())

Indexes: (created_at desc), (like_count desc, created_at desc), (event_id).
"""
