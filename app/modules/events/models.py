# Supabase table: events
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

events:
- id: uuid (primary key)
- title: text (not null)
- date: date (not null)
- location: text (not null)
- description: text (not null, default: '')
- category: text (not null, default: 'General')
- visibility: text (not null) - values: public, private
- user_id: uuid (not null) - owner/creator, always organizers[0]
- creator_name: text (not null)
- organizers: text[] (not null) - ids with edit rights, owner included
- invited_users: text[] (not null, default: '{}')
- pending_invites: text[] (not null, default: '{}') - join requests awaiting approval
- image: text (nullable) - public URL
- service: jsonb (nullable) - {type, business_id, business_name, product_name}, a copy of the booked business
- invite_link: text (unique, not null)
- archived: boolean (not null, default: false) - events are never hard-deleted
- version: integer (not null, default: 0) - optimistic concurrency guard
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Indexes: (visibility, date), GIN on organizers and invited_users.
"""
