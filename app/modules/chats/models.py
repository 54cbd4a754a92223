# Supabase tables: chats, chat_messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

chats:
- id: uuid (primary key)
- event_id: uuid (unique, not null) - one group chat per event
- title: text (not null)
- admins: text[] (not null) - the event organizers
- members: text[] (not null) - organizers and invited users
- version: integer (not null, default: 0) - optimistic concurrency guard
- created_at: timestamp (default: now())

chat_messages:
- id: uuid (primary key)
- chat_id: uuid (foreign key to chats.id, not null)
- user_id: uuid (not null)
- text: text (not null)
- created_at: timestamp (default: now())
"""
